"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for ingestion failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class StageError(PipelineError):
    """Raised when a stage of an ingestion attempt cannot complete."""

    error_code = "STAGE_ERROR"


class MalformedRowError(StageError):
    """Raised when a source row cannot be parsed. Fatal to the whole attempt."""

    error_code = "MALFORMED_ROW"

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number


class StorageError(StageError):
    """Raised when durable storage rejects a write or listing."""

    error_code = "STORAGE_ERROR"


class ProvisioningError(PipelineError):
    """Raised when the search index cannot be verified or created."""

    error_code = "PROVISIONING_ERROR"


class IngestionCancelled(PipelineError):
    """Raised when the cancellation signal is observed mid-attempt."""

    error_code = "CANCELLED"
