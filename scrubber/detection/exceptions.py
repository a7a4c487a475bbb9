class DetectionError(Exception):
    """Raised when PII detection fails."""


class EntityExtractionError(DetectionError):
    """Raised when the NLP entity extractor fails or cannot be loaded."""
