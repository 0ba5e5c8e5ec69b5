"""JobReport model.

One row per import run; counters are stored as JSON-serialized text.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog_sync.stores.postgres import Base


class JobReport(Base):
    __tablename__ = "job_reports"

    id: Mapped[int] = mapped_column(primary_key=True)
    job_type: Mapped[str] = mapped_column(String(50))
    job_status: Mapped[str] = mapped_column(String(20), index=True)  # RUNNING, SUCCEEDED, FAILED, CRASHED
    command_line: Mapped[str] = mapped_column(Text)
    pid: Mapped[int | None] = mapped_column(Integer)

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    report_data_json: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<JobReport {self.id} {self.job_type} {self.job_status}>"
