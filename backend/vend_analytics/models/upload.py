from sqlalchemy import Column, Date, Integer, DateTime, ForeignKey, String, Uuid
import uuid
from vend_analytics.core.db import Base
from sqlalchemy.sql import func

class UploadJob(Base):
    """
    One CSV import. Created as "processing" when the import starts, moved to
    "completed" or "failed" exactly once, never revisited.
    """
    __tablename__ = "upload_jobs"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)
    filename = Column(String, nullable=False)
    platform = Column(String, nullable=False)
    period_start = Column(Date, nullable=True)
    period_end = Column(Date, nullable=True)
    status = Column(String, default="pending", nullable=False)
    total_rows = Column(Integer, default=0, nullable=False)
    imported_rows = Column(Integer, default=0, nullable=False)
    duplicate_rows = Column(Integer, default=0, nullable=False)
    error_message = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    completed_at = Column(DateTime, nullable=True)
