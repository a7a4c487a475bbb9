class ProcessorError(Exception):
    """Base exception for all processing-pipeline errors."""


class RunConfigurationError(ProcessorError):
    """Raised when a run cannot start: missing config or no readable sources."""


class SourceReadError(ProcessorError):
    """Raised when a source file cannot be opened or decoded."""


class RecordError(ProcessorError):
    """Base exception for problems confined to a single row."""


class MissingFieldError(RecordError):
    """Raised when a required field is unmapped or absent from the row."""


class InvalidFieldError(RecordError):
    """Raised when a mapped field holds a value that cannot be interpreted."""
