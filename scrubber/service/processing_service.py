from scrubber.config.settings import Settings
from scrubber.database.models import RunRecord
from scrubber.database.repositories.project_repository import ProjectRepository
from scrubber.database.repositories.run_repository import RunRepository
from scrubber.detection.factory import DetectorFactory
from scrubber.logging.logger import Log
from scrubber.processor.models import PreviewItem
from scrubber.processor.output import JsonlExporter
from scrubber.processor.preview import PreviewGenerator
from scrubber.processor.source_reader import SourceReader
from scrubber.service.exceptions import BadRequestError, NotFoundError


class ProcessingService:
    """Request-level operations on processing runs.

    Callers are expected to have authorized the project already. Every method
    either returns or raises a RequestError subclass; none waits on a run.
    """

    def __init__(
        self,
        project_repo: ProjectRepository,
        run_repo: RunRepository,
        preview_generator: PreviewGenerator,
        exporter: JsonlExporter,
        settings: Settings,
    ) -> None:
        self._project_repo = project_repo
        self._run_repo = run_repo
        self._preview_generator = preview_generator
        self._exporter = exporter
        self._settings = settings

    def trigger_run(self, project_id: int, user_id: int) -> RunRecord:
        """Queue a pending run. A worker picks it up; this returns immediately."""
        run = self._run_repo.create_run(project_id, user_id)
        Log.info(
            f"Run {run.id} queued for project {project_id} by user {user_id} "
            f"({run.total_records} records expected)"
        )
        return run

    def get_run(self, run_id: int, project_id: int) -> RunRecord:
        run = self._run_repo.find_by_id(run_id, project_id)
        if run is None:
            raise NotFoundError("Processing run not found")
        return run

    def list_runs(self, project_id: int) -> list[RunRecord]:
        if not self._project_repo.project_exists(project_id):
            raise NotFoundError("Project not found")
        return self._run_repo.list_for_project(project_id)

    def cancel_run(self, run_id: int, project_id: int) -> RunRecord:
        run = self._run_repo.cancel(run_id, project_id)
        Log.info(f"Run {run_id} cancelled for project {project_id}")
        return run

    def preview(self, project_id: int, sample_size: int | None = None) -> list[PreviewItem]:
        return self._preview_generator.preview(project_id, sample_size)

    def download(self, run_id: int, project_id: int) -> str:
        return self._exporter.export(run_id, project_id)

    def download_sample(
        self,
        run_id: int,
        project_id: int,
        sample_size: int | None = None,
    ) -> str:
        size = self._settings.output_sample_size if sample_size is None else sample_size
        if size < 1:
            raise BadRequestError("Sample size must be at least 1")
        return self._exporter.export(run_id, project_id, limit=size)


def build_processing_service(settings: Settings) -> ProcessingService:
    """Build a ProcessingService with all required adapters."""
    project_repo = ProjectRepository()
    run_repo = RunRepository()
    preview_generator = PreviewGenerator(
        project_repo=project_repo,
        source_reader=SourceReader(files_root=settings.files_root),
        detector=DetectorFactory.create(settings),
        default_sample_size=settings.preview_sample_size,
    )
    return ProcessingService(
        project_repo=project_repo,
        run_repo=run_repo,
        preview_generator=preview_generator,
        exporter=JsonlExporter(run_repo),
        settings=settings,
    )
