from scrubber.database.models import RunRecord
from scrubber.database.repositories.run_repository import RunRepository
from scrubber.logging.logger import Log
from scrubber.processor.orchestrator import RunOrchestrator


class RunRunner:
    """Run one claimed processing run and fail it on run-level errors."""

    def __init__(self, orchestrator: RunOrchestrator, run_repo: RunRepository) -> None:
        self._orchestrator = orchestrator
        self._run_repo = run_repo

    def run(self, run: RunRecord) -> None:
        """Execute a single run. Never raises for pipeline errors."""
        Log.info(f"Running processing run {run.id} for project {run.project_id}")
        try:
            status = self._orchestrator.execute(run)
            Log.info(f"Run {run.id} finished with status {status}")
        except Exception as exc:
            self._handle_failure(run, exc)

    def _handle_failure(self, run: RunRecord, exc: Exception) -> None:
        message = str(exc) or exc.__class__.__name__
        Log.exception(f"Run {run.id} failed: {message}")
        if not self._run_repo.mark_failed(run.id, message):
            Log.warning(f"Run {run.id} was already finished; failure not recorded")
