from abc import ABC, abstractmethod


class BaseEntityExtractor(ABC):
    """Contract for all NLP entity extraction adapters."""

    @abstractmethod
    def persons(self, text: str) -> list[str]:
        """Return person names found in text, in order of appearance.

        Raises:
            EntityExtractionError: on any failure.
        """

    @abstractmethod
    def organizations(self, text: str) -> list[str]:
        """Return organization names found in text, in order of appearance.

        Raises:
            EntityExtractionError: on any failure.
        """
