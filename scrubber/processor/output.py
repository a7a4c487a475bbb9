import json

from scrubber.database.models import RunStatus
from scrubber.database.repositories.run_repository import RunRepository
from scrubber.service.exceptions import BadRequestError, NotFoundError


class JsonlExporter:
    """Serializes the kept records of a completed run as JSON Lines."""

    def __init__(self, run_repo: RunRepository) -> None:
        self._run_repo = run_repo

    def export(self, run_id: int, project_id: int, limit: int | None = None) -> str:
        """One content object per line, ascending source row number.

        Filtered and errored records are left out. With *limit*, only the
        first records are returned.

        Raises:
            NotFoundError: the run does not belong to the project.
            BadRequestError: the run is not completed.
        """
        run = self._run_repo.find_by_id(run_id, project_id)
        if run is None:
            raise NotFoundError("Processing run not found")
        if run.status != RunStatus.COMPLETED:
            raise BadRequestError("Processing run is not completed")

        contents = self._run_repo.fetch_output_contents(run_id, limit=limit)
        return "\n".join(json.dumps(content, ensure_ascii=False) for content in contents)
