from collections.abc import Mapping

from scrubber.config.settings import Settings
from scrubber.database.models import (
    FieldMapping,
    NewProcessedRecord,
    ProcessingConfigRecord,
    RunRecord,
    RunStatus,
)
from scrubber.database.repositories.project_repository import ProjectRepository
from scrubber.database.repositories.run_repository import RunRepository
from scrubber.detection.allocator import PlaceholderAllocator
from scrubber.detection.detector import PiiDetector
from scrubber.detection.factory import DetectorFactory
from scrubber.detection.models import DetectionOptions
from scrubber.logging.logger import Log
from scrubber.processor.exceptions import RunConfigurationError
from scrubber.processor.models import (
    RunState,
    RunStatistics,
    build_content,
    empty_content,
)
from scrubber.processor.record_filter import RecordFilter
from scrubber.processor.source_reader import SourceReader


class RunOrchestrator:
    """Drives one claimed processing run through the row loop.

    The run is already in processing when execute() is called. Sources are
    read in order and rows are numbered continuously across them. Before each
    row the persisted status is re-read; anything other than processing
    (normally a cancel) stops the loop. Exceptions raised while handling a
    single row are recorded on that row and the loop continues. Anything
    raised outside the per-row guard propagates to the caller, which fails
    the run.
    """

    def __init__(
        self,
        project_repo: ProjectRepository,
        run_repo: RunRepository,
        source_reader: SourceReader,
        record_filter: RecordFilter,
        detector: PiiDetector,
        settings: Settings,
    ) -> None:
        self._project_repo = project_repo
        self._run_repo = run_repo
        self._source_reader = source_reader
        self._record_filter = record_filter
        self._detector = detector
        self._settings = settings

    def execute(self, run: RunRecord) -> str:
        """Process every row of the run's project. Returns the run's final status.

        Raises:
            RunConfigurationError: no processing config, or no parsed source
                                   with a message content mapping.
            SourceReadError: a source file cannot be read.
        """
        config = self._project_repo.get_config(run.project_id)
        if config is None:
            raise RunConfigurationError("Processing config not found")

        sources = self._project_repo.list_readable_sources(run.project_id)
        if not sources:
            raise RunConfigurationError(
                "No parsed data sources with a message content mapping"
            )

        options = DetectionOptions.from_config(config)
        state = RunState(
            allocator=PlaceholderAllocator(),
            statistics=RunStatistics(max_errors=self._settings.max_reported_errors),
        )
        Log.info(f"Run {run.id}: processing {len(sources)} source(s) for project {run.project_id}")

        try:
            for readable in sources:
                Log.info(
                    f"Run {run.id}: reading source {readable.source.id} ({readable.source.name})"
                )
                for row in self._source_reader.read_rows(readable.source):
                    status = self._run_repo.get_status(run.id)
                    if status != RunStatus.PROCESSING:
                        self._flush(run.id, state)
                        Log.info(
                            f"Run {run.id} stopped at row {state.row_number + 1}: "
                            f"status is {status}"
                        )
                        return status or RunStatus.CANCELLED

                    state.row_number += 1
                    self._process_row(run.id, row, readable.mapping, config, options, state)

                    if state.rows_handled % self._settings.progress_flush_every == 0:
                        self._flush(run.id, state)
        except Exception:
            # Failed runs keep the counters of the records already written.
            if state.rows_handled:
                self._flush(run.id, state)
            raise

        return self._complete(run, state)

    # ------------------------------------------------------------------
    # Row handling
    # ------------------------------------------------------------------

    def _process_row(
        self,
        run_id: int,
        row: Mapping[str, object],
        mapping: FieldMapping,
        config: ProcessingConfigRecord,
        options: DetectionOptions,
        state: RunState,
    ) -> None:
        row_number = state.row_number
        try:
            outcome = self._record_filter.evaluate(row, mapping, config)
            if outcome.filtered:
                self._run_repo.append_record(
                    run_id,
                    NewProcessedRecord(
                        source_row_number=row_number,
                        content=empty_content(),
                        was_filtered=True,
                        filter_reason=outcome.reason,
                    ),
                )
                state.filtered += 1
                state.statistics.record_filter(outcome.reason or "")
                return

            text = outcome.content
            pii_mappings: dict[str, str] = {}
            counts = None
            if config.de_identification_enabled:
                result = self._detector.detect(text, options, state.allocator)
                text, pii_mappings, counts = result.text, result.pii_mappings, result.counts

            self._run_repo.append_record(
                run_id,
                NewProcessedRecord(
                    source_row_number=row_number,
                    content=build_content(outcome.role, text, outcome.metadata),
                    pii_mappings=pii_mappings,
                ),
            )
            state.processed += 1
            if counts is not None:
                state.statistics.pii_counts.add(counts)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            Log.warning(f"Run {run_id}: row {row_number} failed: {message}")
            self._run_repo.append_record(
                run_id,
                NewProcessedRecord(
                    source_row_number=row_number,
                    content=empty_content(),
                    has_error=True,
                    error_message=message,
                ),
            )
            state.errored += 1
            state.statistics.record_error(row_number, message)

    # ------------------------------------------------------------------
    # Progress and completion
    # ------------------------------------------------------------------

    def _flush(self, run_id: int, state: RunState) -> None:
        self._run_repo.update_progress(run_id, state.processed, state.filtered, state.errored)

    def _complete(self, run: RunRecord, state: RunState) -> str:
        completed = self._run_repo.mark_completed(
            run.id,
            state.processed,
            state.filtered,
            state.errored,
            state.statistics.as_dict(),
        )
        if not completed:
            status = self._run_repo.get_status(run.id) or RunStatus.CANCELLED
            self._flush(run.id, state)
            Log.info(f"Run {run.id} finished its rows but is already {status}")
            return status

        Log.info(
            f"Run {run.id} completed: {state.processed} processed, "
            f"{state.filtered} filtered, {state.errored} errors, "
            f"{len(state.allocator)} distinct PII values"
        )
        return RunStatus.COMPLETED


def build_orchestrator(settings: Settings) -> RunOrchestrator:
    """Build a RunOrchestrator with all required adapters."""
    return RunOrchestrator(
        project_repo=ProjectRepository(),
        run_repo=RunRepository(),
        source_reader=SourceReader(files_root=settings.files_root),
        record_filter=RecordFilter(),
        detector=DetectorFactory.create(settings),
        settings=settings,
    )
