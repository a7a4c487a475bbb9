import csv
import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from scrubber.database.models import SourceRecord
from scrubber.processor.exceptions import SourceReadError

Row = dict[str, Any]


class SourceReader:
    """Streams the rows of a parsed file source as {column: value} dicts.

    Every call to read_rows starts again from the first data row.
    """

    FILES_ROOT = Path("/app/uploads")
    SUPPORTED_TYPES = ("csv", "json", "xlsx")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    def read_rows(self, source: SourceRecord) -> Iterator[Row]:
        """Return an iterator over the source's rows.

        Raises:
            SourceReadError: no file, missing file, unsupported type, or a
                             decoding problem while iterating.
        """
        file_type = (source.file_type or "").lower()
        if file_type not in self.SUPPORTED_TYPES:
            raise SourceReadError(f"Unsupported file type '{source.file_type}'")
        path = self._resolve_path(source)

        if file_type == "csv":
            return self._read_csv(path)
        if file_type == "json":
            return self._read_json(path)
        return self._read_xlsx(path, source.selected_sheet)

    def _resolve_path(self, source: SourceRecord) -> Path:
        if not source.file_path:
            raise SourceReadError(f"Source {source.id} has no file")
        path = Path(source.file_path)
        if not path.is_absolute():
            path = self._files_root / path
        if not path.exists():
            raise SourceReadError(f"Source file not found: {path}")
        return path

    def _read_csv(self, path: Path) -> Iterator[Row]:
        try:
            with path.open(encoding="utf-8-sig", newline="") as handle:
                # DictReader skips empty lines only; rows of empty cells are kept.
                for record in csv.DictReader(handle):
                    yield {
                        key.strip(): value.strip() if isinstance(value, str) else value
                        for key, value in record.items()
                        if key is not None
                    }
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise SourceReadError(f"Failed to read CSV {path.name}: {exc}") from exc

    def _read_json(self, path: Path) -> Iterator[Row]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SourceReadError(f"Failed to read JSON {path.name}: {exc}") from exc

        records = data if isinstance(data, list) else [data]
        for record in records:
            if isinstance(record, dict):
                yield record

    def _read_xlsx(self, path: Path, sheet_name: str | None) -> Iterator[Row]:
        try:
            workbook = load_workbook(path, read_only=True, data_only=True)
        except Exception as exc:
            raise SourceReadError(f"Failed to open workbook {path.name}: {exc}") from exc

        try:
            if sheet_name:
                if sheet_name not in workbook.sheetnames:
                    raise SourceReadError(f"Sheet '{sheet_name}' not found in {path.name}")
                sheet = workbook[sheet_name]
            else:
                sheet = workbook.worksheets[0]

            rows = sheet.iter_rows(values_only=True)
            header = next(rows, None)
            if header is None:
                return
            columns = [str(cell).strip() if cell is not None else None for cell in header]
            for values in rows:
                if all(value is None or value == "" for value in values):
                    continue
                yield {
                    column: value
                    for column, value in zip(columns, values)
                    if column
                }
        finally:
            workbook.close()
