"""Document generation interfaces for Settlr."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.document import EscrowData, GeneratedDocument
from ..models.enums import DocumentType


class ILLMClient(ABC):
    """
    Abstract interface for a chat-completion language model.

    Implementations send one system prompt and one user prompt and
    return the model's text reply.
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Name of the model requests are sent to."""
        pass

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
    ) -> str:
        """
        Run a single chat completion.

        Returns:
            The reply text.

        Raises:
            DocumentGenerationError: If the provider call fails.
        """
        pass


class IDocumentGenerator(ABC):
    """
    Abstract interface for escrow document generation.

    Implementations turn structured deal data into a drafted document
    of the requested type.
    """

    @abstractmethod
    def generate(self, document_type: DocumentType, data: EscrowData) -> str:
        """Draft a document and return its text without storing it."""
        pass

    @abstractmethod
    def generate_and_store(
        self,
        document_type: DocumentType,
        data: EscrowData,
        deal_id: str,
    ) -> GeneratedDocument:
        """
        Draft a document and persist it against a deal.

        Returns:
            The GeneratedDocument; ``id`` is None when persistence failed.
        """
        pass
