from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Any
from uuid import UUID
from datetime import datetime, date


class ImportStage(str, Enum):
    LOADING_EXISTING = "loading-existing"
    CREATING_REGIONS = "creating-regions"
    CREATING_LOCATIONS = "creating-locations"
    CREATING_MACHINES = "creating-machines"
    INSERTING_SALES = "inserting-sales"
    DONE = "done"


class ImportProgress(BaseModel):
    """
    Progress notification emitted by the importer, in stage order.
    """
    stage: ImportStage
    current: int
    total: int
    message: str


class ImportResult(BaseModel):
    """
    Summary of one import run. `errors` lists every stage failure; an empty
    list means every write succeeded.
    """
    total_rows: int = 0
    imported_rows: int = 0
    duplicate_rows: int = 0
    regions_created: int = 0
    locations_created: int = 0
    machines_created: int = 0
    errors: List[str] = Field(default_factory=list)


class UploadJobSchema(BaseModel):
    """
    Schema for an upload job and its terminal counters.
    """
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_id: UUID
    filename: str
    platform: str
    period_start: Optional[date]
    period_end: Optional[date]
    status: str
    total_rows: int
    imported_rows: int
    duplicate_rows: int
    error_message: Optional[str]
    created_at: Optional[datetime]
    completed_at: Optional[datetime]


class UploadPreview(BaseModel):
    """
    What the parser made of a file before anything is persisted.
    """
    filename: str
    platform: str
    headers: List[str]
    mapping: Dict[str, str]
    total_rows: int
    sample_rows: List[Dict[str, Any]]
    date_range: Optional[Dict[str, str]]
    errors: List[str]


class UploadResponse(BaseModel):
    job: UploadJobSchema
    result: ImportResult
