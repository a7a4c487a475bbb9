from scrubber.config.settings import Settings
from scrubber.database.connection import close_pool, init_pool
from scrubber.database.repositories.run_repository import RunRepository
from scrubber.logging.logger import Log
from scrubber.processor.orchestrator import build_orchestrator
from scrubber.worker.run_runner import RunRunner
from scrubber.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        orchestrator = build_orchestrator(settings)
        run_repo = RunRepository()
        run_runner = RunRunner(orchestrator, run_repo)
        worker = Worker(run_repo, run_runner, settings)
        worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
