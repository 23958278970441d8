"""Service wiring and request dependencies for the HTTP API."""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request

from ..audit.audit_logger import AuditLogger
from ..auth.firebase_provider import FirebaseIdentityProvider
from ..auth.middleware import SESSION_COOKIE
from ..config.config_manager import ConfigurationManager
from ..config.log_setup import configure_logging
from ..config.models import Settings
from ..escrow.escrow_manager import EscrowManager
from ..exceptions import AuthError
from ..generators.deal_validator import DealValidator
from ..generators.document_exporter import DocumentExporter
from ..generators.document_generator import EscrowDocumentGenerator
from ..generators.llm_client import get_llm_client
from ..interfaces.generator import ILLMClient
from ..interfaces.identity import AuthenticatedUser, IIdentityProvider
from ..parsers.base import DealFileParser
from ..pipeline import EscrowDocumentPipeline
from ..storage.database import DatabaseManager
from ..storage.document_store import DealFileStore, DocumentStore
from ..storage.escrow_store import EscrowStore
from ..storage.user_store import UserStore
from ..views.view_renderer import ViewRenderer


logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler needs, built once per process."""
    settings: Settings
    db_manager: DatabaseManager
    audit_logger: AuditLogger
    escrow_store: EscrowStore
    user_store: UserStore
    document_store: DocumentStore
    deal_file_store: DealFileStore
    escrow_manager: EscrowManager
    config_manager: ConfigurationManager
    llm_client: ILLMClient
    generator: EscrowDocumentGenerator
    validator: DealValidator
    pipeline: EscrowDocumentPipeline
    identity_provider: IIdentityProvider
    parser: DealFileParser
    exporter: DocumentExporter
    views: ViewRenderer


def build_services(
    settings: Settings,
    llm_client: Optional[ILLMClient] = None,
    identity_provider: Optional[IIdentityProvider] = None,
) -> Services:
    """
    Wire stores, managers and generators for the given settings.

    Creates the database tables if they do not exist.
    """
    validation = settings.validate()
    for error in validation.errors:
        logger.error(f"Configuration error: {error}")
    for warning in validation.warnings:
        logger.warning(warning)

    db_manager = DatabaseManager(database_url=settings.database_url)
    db_manager.init_database()

    audit_logger = AuditLogger(db_manager=db_manager)
    escrow_store = EscrowStore(db_manager)
    user_store = UserStore(db_manager)
    document_store = DocumentStore(db_manager)
    escrow_manager = EscrowManager(escrow_store, user_store, audit_logger)

    config_manager = ConfigurationManager(settings.prompt_config_path)
    llm_client = llm_client or get_llm_client(settings)
    generator = EscrowDocumentGenerator(
        llm_client,
        document_store=document_store,
        escrow_store=escrow_store,
        audit_logger=audit_logger,
        config_manager=config_manager,
    )
    validator = DealValidator(llm_client)

    return Services(
        settings=settings,
        db_manager=db_manager,
        audit_logger=audit_logger,
        escrow_store=escrow_store,
        user_store=user_store,
        document_store=document_store,
        deal_file_store=DealFileStore(db_manager),
        escrow_manager=escrow_manager,
        config_manager=config_manager,
        llm_client=llm_client,
        generator=generator,
        validator=validator,
        pipeline=EscrowDocumentPipeline(escrow_manager, generator, validator),
        identity_provider=identity_provider or FirebaseIdentityProvider(
            api_key=settings.firebase_api_key,
            credentials_path=settings.firebase_credentials,
        ),
        parser=DealFileParser(),
        exporter=DocumentExporter(output_dir=settings.export_dir),
        views=ViewRenderer(),
    )


_services: Optional[Services] = None


def get_services() -> Services:
    """Process-wide services built from the environment on first use."""
    global _services
    if _services is None:
        settings = Settings.from_env()
        configure_logging(settings.log_level)
        _services = build_services(settings)
    return _services


def current_user(
    request: Request,
    services: Services = Depends(get_services),
) -> AuthenticatedUser:
    """
    Resolve the signed-in user from the session cookie.

    Raises:
        HTTPException: 401 when the cookie is missing.
        AuthError: When the identity provider rejects the cookie.
    """
    cookie = request.cookies.get(SESSION_COOKIE)
    if not cookie:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return services.identity_provider.verify_session_cookie(cookie)


def optional_user(request: Request, services: Services) -> Optional[AuthenticatedUser]:
    """Like ``current_user`` but returns None instead of raising."""
    cookie = request.cookies.get(SESSION_COOKIE)
    if not cookie:
        return None
    try:
        return services.identity_provider.verify_session_cookie(cookie)
    except AuthError:
        return None
