from typing import Any

from psycopg.rows import dict_row

from scrubber.database.connection import get_connection
from scrubber.database.models import (
    FieldMapping,
    ProcessingConfigRecord,
    ReadableSource,
    SourceRecord,
)

PARSED_SOURCE_STATUS = "parsed"


class ProjectRepository:
    """Read-only access to projects, their configs, sources and field mappings."""

    def project_exists(self, project_id: int) -> bool:
        """True if the project exists and is not soft-deleted."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT 1 FROM projects WHERE id = %s AND deleted_at IS NULL",
                    (project_id,),
                )
                return cur.fetchone() is not None

    def get_config(self, project_id: int) -> ProcessingConfigRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT project_id, de_identification_enabled,
                           detect_names, detect_emails, detect_phones,
                           detect_companies, detect_addresses,
                           min_message_length, min_character_count,
                           resolved_status_field, resolved_status_value,
                           date_range_start, date_range_end,
                           role_identifier_field, agent_role_value,
                           customer_role_value
                    FROM processing_configs
                    WHERE project_id = %s
                    """,
                    (project_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return ProcessingConfigRecord(**row)

    def get_field_mapping(self, source_id: int) -> FieldMapping:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT target_field, source_column
                    FROM field_mappings
                    WHERE source_id = %s AND target_field IS NOT NULL
                    ORDER BY id
                    """,
                    (source_id,),
                )
                rows = cur.fetchall()

        columns: dict[str, str] = {}
        for target_field, source_column in rows:
            # First mapping wins when a target is assigned twice.
            columns.setdefault(target_field, source_column)
        return FieldMapping(columns=columns)

    def list_readable_sources(self, project_id: int) -> list[ReadableSource]:
        """Parsed sources that have a message-content mapping, oldest first."""
        readable: list[ReadableSource] = []
        sources = self._select_sources(
            "WHERE project_id = %s AND status = %s ORDER BY id",
            (project_id, PARSED_SOURCE_STATUS),
        )
        for source in sources:
            mapping = self.get_field_mapping(source.id)
            if mapping.message_column is not None:
                readable.append(ReadableSource(source=source, mapping=mapping))
        return readable

    def _select_sources(self, where: str, params: tuple[Any, ...]) -> list[SourceRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, project_id, name, file_type, status,
                           file_path, selected_sheet, record_count
                    FROM sources
                    """
                    + where,
                    params,
                )
                rows = cur.fetchall()
        return [SourceRecord(**row) for row in rows]
