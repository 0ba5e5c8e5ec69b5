"""Persisted run reports.

A report row is created RUNNING when a job starts and closed as SUCCEEDED or
FAILED with the run counters. Rows left RUNNING by a process that no longer
exists are flipped to CRASHED before the next job starts.
"""

import logging
import os
from typing import Any

from catalog_sync.stores.catalog import CatalogStore

logger = logging.getLogger("uvicorn.error")

STATUS_RUNNING = "RUNNING"
STATUS_SUCCEEDED = "SUCCEEDED"
STATUS_FAILED = "FAILED"
STATUS_CRASHED = "CRASHED"


def pid_is_alive(pid: int) -> bool:
    """True if a process with this pid exists on this host."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class JobReportService:
    def __init__(self, store: CatalogStore, pid_alive=pid_is_alive):
        self.store = store
        self._pid_alive = pid_alive

    async def start(self, job_type: str, command_line: str) -> int:
        report_id = await self.store.create_job_report(job_type, command_line, os.getpid())
        logger.info(f"Started {job_type} job report {report_id}")
        return report_id

    async def succeed(self, report_id: int, data: dict[str, Any]) -> None:
        await self.store.finish_job_report(report_id, STATUS_SUCCEEDED, data)

    async def fail(self, report_id: int, data: dict[str, Any]) -> None:
        await self.store.finish_job_report(report_id, STATUS_FAILED, data)

    async def mark_crashed(self) -> int:
        """Flip RUNNING reports whose process is gone to CRASHED."""
        crashed = [
            report_id
            for report_id, pid in await self.store.fetch_running_job_reports()
            if pid is None or not self._pid_alive(pid)
        ]
        if not crashed:
            return 0
        count = await self.store.set_job_status(crashed, STATUS_CRASHED)
        logger.warning(f"Marked {count} job reports as crashed: {crashed}")
        return count

    async def latest(self, limit: int = 20) -> list[dict[str, Any]]:
        return await self.store.fetch_latest_job_reports(limit)
