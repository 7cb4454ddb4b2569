from pydantic import BaseModel, ConfigDict
from typing import Optional
from uuid import UUID
from datetime import datetime

class AccountCreate(BaseModel):
    name: str

class AccountSchema(BaseModel):
    """
    Schema for the owning account.
    """
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    onboarding_completed: bool
    created_at: Optional[datetime]
