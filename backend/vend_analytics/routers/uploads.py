"""
Uploads Router - CSV preview, import and upload history.
"""

import json
import logging
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from vend_analytics.schemas.upload import UploadJobSchema, UploadPreview, UploadResponse
from vend_analytics.services.store import SalesStore, get_store
from vend_analytics.services.uploads import preview_upload, run_upload

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_mapping(mapping: Optional[str]) -> Optional[Dict[str, str]]:
    """The optional column mapping arrives as a JSON object in a form field."""
    if not mapping:
        return None
    try:
        value = json.loads(mapping)
    except json.JSONDecodeError as e:
        raise ValueError(f"mapping is not valid JSON: {e}") from e
    if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
        raise ValueError("mapping must be a JSON object of field -> column header")
    return value


@router.post("/uploads/preview", response_model=UploadPreview)
async def preview(
    file: UploadFile = File(...),
    platform: Optional[str] = Form(None),
    mapping: Optional[str] = Form(None),
):
    """Parse a file and report the detected platform, mapping and sample rows without saving."""
    content = await file.read()
    try:
        return preview_upload(file.filename or "upload.csv", content, platform, _parse_mapping(mapping))
    except ValueError as e:
        logger.warning(f"Rejected preview of '{file.filename}': {e}")
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/uploads", response_model=UploadResponse)
async def upload(
    file: UploadFile = File(...),
    account_id: UUID = Form(...),
    period_start: Optional[str] = Form(None),
    period_end: Optional[str] = Form(None),
    platform: Optional[str] = Form(None),
    mapping: Optional[str] = Form(None),
    store: SalesStore = Depends(get_store),
):
    """
    Import a sales report for an account. The reporting period comes from
    the form fields, or from the "from M-D-YYYY to M-D-YYYY" part of the
    filename when both are omitted.
    """
    content = await file.read()
    filename = file.filename or "upload.csv"
    try:
        job, result = await run_upload(
            store,
            account_id,
            filename,
            content,
            period_start=period_start,
            period_end=period_end,
            platform=platform,
            mapping=_parse_mapping(mapping),
            on_progress=lambda p: logger.debug(f"[{p.stage.value}] {p.current}/{p.total} {p.message}"),
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        logger.warning(f"Rejected upload '{filename}': {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error importing '{filename}': {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Import failed: {str(e)}")

    return UploadResponse(job=UploadJobSchema.model_validate(job), result=result)


@router.get("/uploads", response_model=List[UploadJobSchema])
async def list_uploads(
    account_id: UUID = Query(..., description="Account UUID"),
    store: SalesStore = Depends(get_store),
):
    return await store.list_uploads(account_id)
