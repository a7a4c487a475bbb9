from unittest.mock import MagicMock

import pytest

from scrubber.database.models import RunRecord
from scrubber.service.exceptions import BadRequestError, ConflictError, NotFoundError
from scrubber.service.processing_service import ProcessingService


def _make_service() -> tuple[ProcessingService, MagicMock, MagicMock, MagicMock, MagicMock]:
    """Create a ProcessingService with mocked dependencies."""
    mock_project_repo = MagicMock()
    mock_run_repo = MagicMock()
    mock_preview = MagicMock()
    mock_exporter = MagicMock()
    settings = MagicMock(output_sample_size=10)
    service = ProcessingService(
        mock_project_repo, mock_run_repo, mock_preview, mock_exporter, settings
    )
    return service, mock_project_repo, mock_run_repo, mock_preview, mock_exporter


def _make_run(status: str = "pending") -> RunRecord:
    return RunRecord(id=5, project_id=1, triggered_by_id=2, status=status, total_records=12)


class TestTriggerRun:
    def test_returns_pending_run(self) -> None:
        service, _project_repo, mock_run_repo, _preview, _exporter = _make_service()
        mock_run_repo.create_run.return_value = _make_run()

        run = service.trigger_run(1, 2)

        assert run.status == "pending"
        mock_run_repo.create_run.assert_called_once_with(1, 2)

    def test_conflict_propagates(self) -> None:
        service, _project_repo, mock_run_repo, _preview, _exporter = _make_service()
        mock_run_repo.create_run.side_effect = ConflictError("already active")

        with pytest.raises(ConflictError):
            service.trigger_run(1, 2)


class TestRunQueries:
    def test_get_run(self) -> None:
        service, _project_repo, mock_run_repo, _preview, _exporter = _make_service()
        mock_run_repo.find_by_id.return_value = _make_run("completed")

        assert service.get_run(5, 1).status == "completed"
        mock_run_repo.find_by_id.assert_called_once_with(5, 1)

    def test_get_run_from_other_project_raises(self) -> None:
        service, _project_repo, mock_run_repo, _preview, _exporter = _make_service()
        mock_run_repo.find_by_id.return_value = None

        with pytest.raises(NotFoundError):
            service.get_run(5, 99)

    def test_list_runs(self) -> None:
        service, mock_project_repo, mock_run_repo, _preview, _exporter = _make_service()
        mock_project_repo.project_exists.return_value = True
        mock_run_repo.list_for_project.return_value = [_make_run()]

        assert len(service.list_runs(1)) == 1

    def test_list_runs_for_missing_project_raises(self) -> None:
        service, mock_project_repo, mock_run_repo, _preview, _exporter = _make_service()
        mock_project_repo.project_exists.return_value = False

        with pytest.raises(NotFoundError):
            service.list_runs(1)
        mock_run_repo.list_for_project.assert_not_called()


class TestCancelRun:
    def test_delegates_to_repository(self) -> None:
        service, _project_repo, mock_run_repo, _preview, _exporter = _make_service()
        mock_run_repo.cancel.return_value = _make_run("cancelled")

        assert service.cancel_run(5, 1).status == "cancelled"
        mock_run_repo.cancel.assert_called_once_with(5, 1)

    def test_finished_run_raises(self) -> None:
        service, _project_repo, mock_run_repo, _preview, _exporter = _make_service()
        mock_run_repo.cancel.side_effect = BadRequestError("Processing run already finished")

        with pytest.raises(BadRequestError):
            service.cancel_run(5, 1)


class TestPreviewAndDownload:
    def test_preview_delegates(self) -> None:
        service, _project_repo, _run_repo, mock_preview, _exporter = _make_service()

        service.preview(1, 3)

        mock_preview.preview.assert_called_once_with(1, 3)

    def test_download_exports_all_records(self) -> None:
        service, _project_repo, _run_repo, _preview, mock_exporter = _make_service()
        mock_exporter.export.return_value = "{}"

        assert service.download(5, 1) == "{}"
        mock_exporter.export.assert_called_once_with(5, 1)

    def test_download_sample_uses_default_size(self) -> None:
        service, _project_repo, _run_repo, _preview, mock_exporter = _make_service()

        service.download_sample(5, 1)

        mock_exporter.export.assert_called_once_with(5, 1, limit=10)

    def test_download_sample_explicit_size(self) -> None:
        service, _project_repo, _run_repo, _preview, mock_exporter = _make_service()

        service.download_sample(5, 1, sample_size=3)

        mock_exporter.export.assert_called_once_with(5, 1, limit=3)

    def test_download_sample_rejects_zero(self) -> None:
        service, _project_repo, _run_repo, _preview, mock_exporter = _make_service()

        with pytest.raises(BadRequestError):
            service.download_sample(5, 1, sample_size=0)
        mock_exporter.export.assert_not_called()
