"""Logging setup for the Settlr service."""

import logging
from typing import Union


_HANDLER_NAME = "settlr-stream"


def configure_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """
    Attach a single stream handler to the ``settlr`` logger.

    Calling it again only updates the level.
    """
    root = logging.getLogger("settlr")
    root.setLevel(level)

    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        root.addHandler(handler)

    return root
