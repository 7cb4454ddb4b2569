from sqlalchemy import Boolean, Column, String, DateTime, Uuid
import uuid
from vend_analytics.core.db import Base
from datetime import datetime

class Account(Base):
    """
    Owning account for every region, location, machine, sales record and upload.
    Authentication happens upstream; the id is what scopes the data.
    """
    __tablename__ = "accounts"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, unique=True, nullable=False)
    name = Column(String, nullable=False)
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
