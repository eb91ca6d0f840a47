"""
Sync Run Model - history of legacy inventory sync runs
"""
from sqlalchemy import Column, String, DateTime, JSON, Uuid
from datetime import datetime, timezone
import enum
import uuid
from app.db.database import Base


class SyncStatus(str, enum.Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class SyncRun(Base):
    __tablename__ = "sync_runs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    site_code = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default=SyncStatus.RUNNING.value)
    started_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    completed_at = Column(DateTime(timezone=True))

    # {"totalFetched": 100, "productsCreated": 10, ...}
    stats = Column(JSON)
    errors = Column(JSON)

    # Set when the run failed before the record loop
    error_message = Column(String(500))
