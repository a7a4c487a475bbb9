import time

from scrubber.config.settings import Settings
from scrubber.database.connection import get_connection
from scrubber.database.models import RunRecord
from scrubber.database.repositories.run_repository import RunRepository
from scrubber.logging.logger import Log
from scrubber.worker.run_runner import RunRunner


class Worker:
    """Poll loop: recover stale runs, then sleep -> claim -> dispatch."""

    def __init__(
        self,
        run_repo: RunRepository,
        run_runner: RunRunner,
        settings: Settings,
    ) -> None:
        self._run_repo = run_repo
        self._run_runner = run_runner
        self._settings = settings

    def run(self, max_runs: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_runs is set, stop after processing that many runs (for testing).
        """
        Log.info("Worker started, polling for processing runs")
        self._recover_stale_runs()
        runs_done = 0
        try:
            while True:
                if max_runs is not None and runs_done >= max_runs:
                    break
                run = self._try_claim_run()
                if run:
                    self._run_runner.run(run)
                    runs_done += 1
                else:
                    Log.debug("No pending runs, sleeping")
                    time.sleep(self._settings.run_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _recover_stale_runs(self) -> None:
        """Fail runs left in processing by a worker that died."""
        try:
            stale = self._run_repo.fail_stale_runs(self._settings.stale_run_timeout_seconds)
        except Exception as exc:
            Log.warning(f"Could not check for stale runs: {exc}")
            return
        if stale:
            Log.warning(f"Marked {len(stale)} stale run(s) as failed: {stale}")

    def _try_claim_run(self) -> RunRecord | None:
        """Attempt to claim the next pending run. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._run_repo.claim_next_run(conn)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
