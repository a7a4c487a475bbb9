from typing import Any

import psycopg
from psycopg import errors
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from scrubber.database.connection import get_connection
from scrubber.database.models import NewProcessedRecord, RunRecord, RunStatus
from scrubber.service.exceptions import BadRequestError, ConflictError, NotFoundError

_RUN_COLUMNS = """
    id, project_id, triggered_by_id, status, total_records,
    processed_records, filtered_records, error_records, statistics,
    error_message, started_at, completed_at, created_at, updated_at
"""


def _to_run(row: dict[str, Any]) -> RunRecord:
    return RunRecord(**row)


class RunRepository:
    """Database operations for the processing_runs and processed_records tables."""

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def create_run(self, project_id: int, triggered_by_id: int) -> RunRecord:
        """Insert a pending run for a project.

        The project row is locked for the duration of the transaction so two
        concurrent triggers for the same project serialize; the partial unique
        index on active runs rejects anything that slips past.

        Raises:
            NotFoundError: project missing or soft-deleted.
            ConflictError: the project already has a pending or processing run.
            BadRequestError: the project has no sources.
        """
        with get_connection() as conn:
            try:
                with conn.transaction():
                    run = self._create_run_locked(conn, project_id, triggered_by_id)
            except errors.UniqueViolation as exc:
                raise ConflictError(
                    "A processing run is already active for this project"
                ) from exc
        return run

    def _create_run_locked(
        self,
        conn: psycopg.Connection[Any],
        project_id: int,
        triggered_by_id: int,
    ) -> RunRecord:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id FROM projects
                WHERE id = %s AND deleted_at IS NULL
                FOR UPDATE
                """,
                (project_id,),
            )
            if cur.fetchone() is None:
                raise NotFoundError("Project not found")

            cur.execute(
                """
                SELECT id FROM processing_runs
                WHERE project_id = %s AND status IN ('pending', 'processing')
                LIMIT 1
                """,
                (project_id,),
            )
            if cur.fetchone() is not None:
                raise ConflictError("A processing run is already active for this project")

            cur.execute(
                """
                SELECT COUNT(*) AS source_count,
                       COALESCE(SUM(record_count), 0) AS total_records
                FROM sources
                WHERE project_id = %s
                """,
                (project_id,),
            )
            totals = cur.fetchone()
            if totals is None or totals["source_count"] == 0:
                raise BadRequestError("Project has no data sources")

            cur.execute(
                f"""
                INSERT INTO processing_runs
                    (project_id, triggered_by_id, status, total_records)
                VALUES (%s, %s, 'pending', %s)
                RETURNING {_RUN_COLUMNS}
                """,
                (project_id, triggered_by_id, int(totals["total_records"])),
            )
            row = cur.fetchone()
        if row is None:
            raise NotFoundError("Project not found")
        return _to_run(row)

    def claim_next_run(self, conn: psycopg.Connection[Any]) -> RunRecord | None:
        """Claim the oldest pending run and flip it to processing.

        Uses SELECT FOR UPDATE SKIP LOCKED so concurrent workers never claim
        the same run.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id
                FROM processing_runs
                WHERE status = 'pending'
                ORDER BY created_at, id
                LIMIT 1
                FOR UPDATE SKIP LOCKED
                """
            )
            row = cur.fetchone()
            if row is None:
                conn.rollback()
                return None

            cur.execute(
                f"""
                UPDATE processing_runs
                SET status = 'processing', started_at = NOW(), updated_at = NOW()
                WHERE id = %s
                RETURNING {_RUN_COLUMNS}
                """,
                (row["id"],),
            )
            claimed = cur.fetchone()
        conn.commit()

        if claimed is None:
            return None
        return _to_run(claimed)

    def get_status(self, run_id: int) -> str | None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT status FROM processing_runs WHERE id = %s",
                    (run_id,),
                )
                row = cur.fetchone()
        return None if row is None else row[0]

    def update_progress(
        self,
        run_id: int,
        processed: int,
        filtered: int,
        errored: int,
    ) -> None:
        """Flush live counters. Also refreshes updated_at, which serves as the heartbeat."""
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE processing_runs
                SET processed_records = GREATEST(processed_records, %s),
                    filtered_records = GREATEST(filtered_records, %s),
                    error_records = GREATEST(error_records, %s),
                    updated_at = NOW()
                WHERE id = %s
                """,
                (processed, filtered, errored, run_id),
            )
            conn.commit()

    def mark_completed(
        self,
        run_id: int,
        processed: int,
        filtered: int,
        errored: int,
        statistics: dict[str, Any],
    ) -> bool:
        """Finalize a processing run. Returns False if it left processing meanwhile."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE processing_runs
                    SET status = 'completed',
                        processed_records = %s,
                        filtered_records = %s,
                        error_records = %s,
                        statistics = %s,
                        completed_at = NOW(),
                        updated_at = NOW()
                    WHERE id = %s AND status = 'processing'
                    """,
                    (processed, filtered, errored, Jsonb(statistics), run_id),
                )
                updated = cur.rowcount == 1
            conn.commit()
        return updated

    def mark_failed(self, run_id: int, error: str) -> bool:
        """Mark an active run as failed. Returns False if it was already terminal."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE processing_runs
                    SET status = 'failed', error_message = %s,
                        completed_at = NOW(), updated_at = NOW()
                    WHERE id = %s AND status IN ('pending', 'processing')
                    """,
                    (error, run_id),
                )
                updated = cur.rowcount == 1
            conn.commit()
        return updated

    def cancel(self, run_id: int, project_id: int) -> RunRecord:
        """Move an active run to cancelled.

        Raises:
            NotFoundError: no such run in this project.
            BadRequestError: the run is already completed, failed or cancelled.
        """
        with get_connection() as conn:
            with conn.transaction():
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        """
                        SELECT status FROM processing_runs
                        WHERE id = %s AND project_id = %s
                        FOR UPDATE
                        """,
                        (run_id, project_id),
                    )
                    row = cur.fetchone()
                    if row is None:
                        raise NotFoundError("Processing run not found")
                    if row["status"] in RunStatus.TERMINAL:
                        raise BadRequestError("Processing run is already finished")

                    cur.execute(
                        f"""
                        UPDATE processing_runs
                        SET status = 'cancelled', completed_at = NOW(), updated_at = NOW()
                        WHERE id = %s
                        RETURNING {_RUN_COLUMNS}
                        """,
                        (run_id,),
                    )
                    cancelled = cur.fetchone()
        if cancelled is None:
            raise NotFoundError("Processing run not found")
        return _to_run(cancelled)

    def fail_stale_runs(self, timeout_seconds: int) -> list[int]:
        """Fail processing runs whose heartbeat is older than the timeout."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE processing_runs
                    SET status = 'failed',
                        error_message = 'Worker interrupted',
                        completed_at = NOW(),
                        updated_at = NOW()
                    WHERE status = 'processing'
                      AND updated_at < NOW() - (%s * INTERVAL '1 second')
                    RETURNING id
                    """,
                    (timeout_seconds,),
                )
                ids = [row[0] for row in cur.fetchall()]
            conn.commit()
        return ids

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_id(self, run_id: int, project_id: int | None = None) -> RunRecord | None:
        query = f"SELECT {_RUN_COLUMNS} FROM processing_runs WHERE id = %s"
        params: tuple[Any, ...] = (run_id,)
        if project_id is not None:
            query += " AND project_id = %s"
            params = (run_id, project_id)
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                row = cur.fetchone()
        return None if row is None else _to_run(row)

    def list_for_project(self, project_id: int) -> list[RunRecord]:
        """Runs of a project, newest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_RUN_COLUMNS} FROM processing_runs
                    WHERE project_id = %s
                    ORDER BY created_at DESC, id DESC
                    """,
                    (project_id,),
                )
                rows = cur.fetchall()
        return [_to_run(row) for row in rows]

    # ------------------------------------------------------------------
    # Processed records
    # ------------------------------------------------------------------

    def append_record(self, run_id: int, record: NewProcessedRecord) -> None:
        pii_mappings = Jsonb(record.pii_mappings) if record.pii_mappings is not None else None
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO processed_records
                    (processing_run_id, source_row_number, content, pii_mappings,
                     was_filtered, filter_reason, has_error, error_message)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    run_id,
                    record.source_row_number,
                    Jsonb(record.content),
                    pii_mappings,
                    record.was_filtered,
                    record.filter_reason,
                    record.has_error,
                    record.error_message,
                ),
            )
            conn.commit()

    def fetch_output_contents(
        self,
        run_id: int,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Contents of kept records (not filtered, no error) in row order."""
        query = """
            SELECT content FROM processed_records
            WHERE processing_run_id = %s
              AND was_filtered = FALSE
              AND has_error = FALSE
            ORDER BY source_row_number
        """
        params: tuple[Any, ...] = (run_id,)
        if limit is not None:
            query += " LIMIT %s"
            params = (run_id, limit)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        return [row[0] for row in rows]
