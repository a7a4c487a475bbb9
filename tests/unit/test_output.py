import json
from unittest.mock import MagicMock

import pytest

from scrubber.database.models import RunRecord
from scrubber.processor.output import JsonlExporter
from scrubber.service.exceptions import BadRequestError, NotFoundError


def _make_exporter(status: str = "completed") -> tuple[JsonlExporter, MagicMock]:
    mock_repo = MagicMock()
    mock_repo.find_by_id.return_value = RunRecord(
        id=4, project_id=1, triggered_by_id=2, status=status
    )
    mock_repo.fetch_output_contents.return_value = [
        {"messages": [{"role": "customer", "content": "Hi [PERSON_1]"}], "metadata": {}},
        {
            "messages": [{"role": "agent", "content": "Grüße"}],
            "metadata": {"ticket_id": "981"},
        },
    ]
    return JsonlExporter(mock_repo), mock_repo


class TestExport:
    def test_one_json_object_per_line(self) -> None:
        exporter, _repo = _make_exporter()

        lines = exporter.export(4, 1).split("\n")

        assert len(lines) == 2
        assert json.loads(lines[0])["messages"][0]["content"] == "Hi [PERSON_1]"
        assert json.loads(lines[1])["metadata"] == {"ticket_id": "981"}

    def test_non_ascii_is_written_as_is(self) -> None:
        exporter, _repo = _make_exporter()
        assert "Grüße" in exporter.export(4, 1)

    def test_no_trailing_newline(self) -> None:
        exporter, _repo = _make_exporter()
        assert not exporter.export(4, 1).endswith("\n")

    def test_limit_is_passed_to_repository(self) -> None:
        exporter, mock_repo = _make_exporter()

        exporter.export(4, 1, limit=10)

        mock_repo.fetch_output_contents.assert_called_once_with(4, limit=10)

    def test_empty_run_exports_empty_string(self) -> None:
        exporter, mock_repo = _make_exporter()
        mock_repo.fetch_output_contents.return_value = []
        assert exporter.export(4, 1) == ""


class TestExportErrors:
    def test_unknown_run_raises_not_found(self) -> None:
        exporter, mock_repo = _make_exporter()
        mock_repo.find_by_id.return_value = None
        with pytest.raises(NotFoundError):
            exporter.export(4, 1)

    @pytest.mark.parametrize("status", ["pending", "processing", "failed", "cancelled"])
    def test_unfinished_run_raises_bad_request(self, status: str) -> None:
        exporter, mock_repo = _make_exporter(status)
        with pytest.raises(BadRequestError, match="not completed"):
            exporter.export(4, 1)
        mock_repo.fetch_output_contents.assert_not_called()
