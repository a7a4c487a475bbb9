from collections.abc import Iterable
from typing import Any

from scrubber.database.models import (
    FieldMapping,
    ProcessingConfigRecord,
    ReadableSource,
    SourceRecord,
)
from scrubber.detection.base import BaseEntityExtractor
from scrubber.detection.models import DetectionOptions


class StubExtractor(BaseEntityExtractor):
    """Reports a fixed list of entities whenever they occur in the text."""

    def __init__(
        self,
        persons: Iterable[str] = (),
        organizations: Iterable[str] = (),
    ) -> None:
        self._persons = list(persons)
        self._organizations = list(organizations)

    def persons(self, text: str) -> list[str]:
        return [p for p in self._persons if p in text]

    def organizations(self, text: str) -> list[str]:
        return [o for o in self._organizations if o in text]


def only(*categories: str) -> DetectionOptions:
    """DetectionOptions with just the named categories switched on."""
    return DetectionOptions(
        detect_names="names" in categories,
        detect_emails="emails" in categories,
        detect_phones="phones" in categories,
        detect_companies="companies" in categories,
        detect_addresses="addresses" in categories,
    )


def make_config(**overrides: Any) -> ProcessingConfigRecord:
    values: dict[str, Any] = {"project_id": 1}
    values.update(overrides)
    return ProcessingConfigRecord(**values)


def make_source(
    source_id: int = 1,
    file_type: str = "csv",
    file_path: str | None = "data.csv",
    **overrides: Any,
) -> SourceRecord:
    values: dict[str, Any] = {
        "id": source_id,
        "project_id": 1,
        "name": f"source-{source_id}",
        "file_type": file_type,
        "status": "parsed",
        "file_path": file_path,
    }
    values.update(overrides)
    return SourceRecord(**values)


def make_readable(source_id: int = 1, **columns: str) -> ReadableSource:
    mapping = FieldMapping(columns=columns or {"message_content": "message"})
    return ReadableSource(source=make_source(source_id), mapping=mapping)
