from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class RunStatus:
    """Values of processing_runs.status."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    TERMINAL = (COMPLETED, FAILED, CANCELLED)


class TargetField:
    """Semantic fields a source column can be mapped to."""

    MESSAGE_CONTENT = "message_content"
    SENDER_NAME = "sender_name"
    SENDER_EMAIL = "sender_email"
    SENDER_ROLE = "sender_role"
    TIMESTAMP = "timestamp"
    TICKET_ID = "ticket_id"
    STATUS = "status"
    SUBJECT = "subject"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ProcessingConfigRecord:
    """Represents a row from the processing_configs table."""

    project_id: int
    de_identification_enabled: bool = True
    detect_names: bool = True
    detect_emails: bool = True
    detect_phones: bool = True
    detect_companies: bool = True
    detect_addresses: bool = True
    min_message_length: int | None = None
    min_character_count: int | None = None
    resolved_status_field: str | None = None
    resolved_status_value: str | None = None
    date_range_start: datetime | None = None
    date_range_end: datetime | None = None
    role_identifier_field: str | None = None
    agent_role_value: str | None = None
    customer_role_value: str | None = None


@dataclass(frozen=True)
class SourceRecord:
    """Represents a row from the sources table."""

    id: int
    project_id: int
    name: str
    file_type: str
    status: str
    file_path: str | None = None
    selected_sheet: str | None = None
    record_count: int | None = None


@dataclass(frozen=True)
class FieldMapping:
    """Resolved column -> semantic field assignment for one source."""

    columns: dict[str, str] = field(default_factory=dict)  # target_field -> source_column

    def column_for(self, target_field: str) -> str | None:
        return self.columns.get(target_field)

    @property
    def message_column(self) -> str | None:
        return self.columns.get(TargetField.MESSAGE_CONTENT)


@dataclass(frozen=True)
class ReadableSource:
    """A parsed source together with its resolved field mapping."""

    source: SourceRecord
    mapping: FieldMapping


@dataclass
class RunRecord:
    """Represents a row from the processing_runs table."""

    id: int
    project_id: int
    triggered_by_id: int
    status: str
    total_records: int | None = None
    processed_records: int = 0
    filtered_records: int = 0
    error_records: int = 0
    statistics: dict[str, Any] | None = None
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class NewProcessedRecord:
    """One row outcome, ready to be appended to processed_records."""

    source_row_number: int
    content: dict[str, Any]
    pii_mappings: dict[str, str] | None = None
    was_filtered: bool = False
    filter_reason: str | None = None
    has_error: bool = False
    error_message: str | None = None
