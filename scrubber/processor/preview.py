from itertools import islice

from scrubber.database.repositories.project_repository import ProjectRepository
from scrubber.detection.allocator import PlaceholderAllocator
from scrubber.detection.detector import PiiDetector
from scrubber.detection.models import DetectionOptions
from scrubber.logging.logger import Log
from scrubber.processor.exceptions import SourceReadError
from scrubber.processor.models import PreviewItem
from scrubber.processor.source_reader import SourceReader
from scrubber.service.exceptions import BadRequestError, NotFoundError


class PreviewGenerator:
    """Shows detection on the first few messages of a project, without a run.

    Quality filters and role classification are not applied. Placeholders
    come from an allocator created for the call, and nothing is persisted.
    """

    def __init__(
        self,
        project_repo: ProjectRepository,
        source_reader: SourceReader,
        detector: PiiDetector,
        default_sample_size: int = 5,
    ) -> None:
        self._project_repo = project_repo
        self._source_reader = source_reader
        self._detector = detector
        self._default_sample_size = default_sample_size

    def preview(self, project_id: int, sample_size: int | None = None) -> list[PreviewItem]:
        """Run detection over the first *sample_size* rows of the first readable source.

        Raises:
            NotFoundError: project missing or soft-deleted.
            BadRequestError: no config, no parsed source with a message
                             content mapping, or an unreadable source file.
        """
        size = self._default_sample_size if sample_size is None else sample_size
        if size < 1:
            raise BadRequestError("Sample size must be at least 1")

        if not self._project_repo.project_exists(project_id):
            raise NotFoundError("Project not found")

        config = self._project_repo.get_config(project_id)
        if config is None:
            raise BadRequestError("Processing config not found")

        sources = self._project_repo.list_readable_sources(project_id)
        if not sources:
            raise BadRequestError("No parsed data source with a message content mapping")
        readable = sources[0]
        column = readable.mapping.message_column

        options = DetectionOptions.from_config(config)
        allocator = PlaceholderAllocator()
        items: list[PreviewItem] = []
        try:
            for row in islice(self._source_reader.read_rows(readable.source), size):
                value = row.get(column) if column else None
                original = "" if value is None else str(value)
                if not original.strip():
                    continue
                result = self._detector.detect(original, options, allocator)
                items.append(
                    PreviewItem(
                        original=original,
                        processed=result.text,
                        pii_found=result.pii_mappings,
                    )
                )
        except SourceReadError as exc:
            raise BadRequestError(str(exc)) from exc

        Log.debug(f"Preview for project {project_id}: {len(items)} sample(s)")
        return items
