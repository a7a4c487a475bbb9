from collections.abc import Mapping
from datetime import date, datetime, timezone

from scrubber.database.models import FieldMapping, ProcessingConfigRecord, TargetField
from scrubber.processor.exceptions import InvalidFieldError, MissingFieldError
from scrubber.processor.models import FilterOutcome, FilterReason, SenderRole


class RecordFilter:
    """Applies quality thresholds to a row and classifies its sender role.

    Checks run in order and stop at the first one that drops the row:
    minimum message length, minimum character count, resolved status,
    date range. A kept row is then tagged agent / customer / unknown.
    The input row is never modified.
    """

    METADATA_FIELDS: tuple[tuple[str, str], ...] = (
        ("ticket_id", TargetField.TICKET_ID),
        ("subject", TargetField.SUBJECT),
        ("timestamp", TargetField.TIMESTAMP),
    )

    def evaluate(
        self,
        row: Mapping[str, object],
        mapping: FieldMapping,
        config: ProcessingConfigRecord,
    ) -> FilterOutcome:
        """Decide whether *row* is kept.

        Raises:
            MissingFieldError: message content is unmapped or absent from the row.
            InvalidFieldError: a date-range check met an unparseable timestamp.
        """
        content = self._message_content(row, mapping)

        if config.min_message_length and len(content) < config.min_message_length:
            return FilterOutcome.drop(FilterReason.MIN_LENGTH, content)

        if config.min_character_count and self._visible_length(content) < config.min_character_count:
            return FilterOutcome.drop(FilterReason.MIN_CHARACTERS, content)

        if not self._status_resolved(row, mapping, config):
            return FilterOutcome.drop(FilterReason.STATUS, content)

        if not self._in_date_range(row, mapping, config):
            return FilterOutcome.drop(FilterReason.DATE_RANGE, content)

        return FilterOutcome(
            content=content,
            role=self._classify_role(row, mapping, config),
            metadata=self._metadata(row, mapping),
        )

    def _message_content(self, row: Mapping[str, object], mapping: FieldMapping) -> str:
        column = mapping.message_column
        if column is None:
            raise MissingFieldError("No message content field mapped")
        if column not in row:
            raise MissingFieldError(f"Row has no value for column '{column}'")
        return _cell(row, column)

    @staticmethod
    def _visible_length(content: str) -> int:
        return sum(1 for ch in content if not ch.isspace())

    def _status_resolved(
        self,
        row: Mapping[str, object],
        mapping: FieldMapping,
        config: ProcessingConfigRecord,
    ) -> bool:
        expected = (config.resolved_status_value or "").strip().lower()
        if not expected:
            return True
        column = config.resolved_status_field or mapping.column_for(TargetField.STATUS)
        if column is None:
            return True
        return _cell(row, column).strip().lower() == expected

    def _in_date_range(
        self,
        row: Mapping[str, object],
        mapping: FieldMapping,
        config: ProcessingConfigRecord,
    ) -> bool:
        if config.date_range_start is None and config.date_range_end is None:
            return True
        column = mapping.column_for(TargetField.TIMESTAMP)
        if column is None:
            return True

        moment = _parse_timestamp(row.get(column), column)
        if moment is None:
            return False
        if config.date_range_start is not None and moment < _naive_utc(config.date_range_start):
            return False
        if config.date_range_end is not None and moment > _naive_utc(config.date_range_end):
            return False
        return True

    def _classify_role(
        self,
        row: Mapping[str, object],
        mapping: FieldMapping,
        config: ProcessingConfigRecord,
    ) -> str:
        column = mapping.column_for(TargetField.SENDER_ROLE) or config.role_identifier_field
        if column is None:
            return SenderRole.UNKNOWN

        value = _cell(row, column).lower()
        agent = (config.agent_role_value or "").lower()
        customer = (config.customer_role_value or "").lower()
        if agent and agent in value:
            return SenderRole.AGENT
        if customer and customer in value:
            return SenderRole.CUSTOMER
        return SenderRole.UNKNOWN

    def _metadata(self, row: Mapping[str, object], mapping: FieldMapping) -> dict[str, str]:
        metadata: dict[str, str] = {}
        for key, target in self.METADATA_FIELDS:
            column = mapping.column_for(target)
            if column is not None:
                metadata[key] = _cell(row, column)
        return metadata


def _cell(row: Mapping[str, object], column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_timestamp(value: object, column: str) -> datetime | None:
    """Parse a cell into a naive UTC datetime. Blank cells yield None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _naive_utc(datetime.fromisoformat(text))
    except ValueError as exc:
        raise InvalidFieldError(f"Invalid timestamp in column '{column}': {value!r}") from exc
