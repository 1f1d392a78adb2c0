"""
Import API endpoints.
"""

import logging

from fastapi import APIRouter, Depends, UploadFile, File, HTTPException
from sqlalchemy.orm import Session

from taxtrack.database import get_db
from taxtrack.schemas.import_file import (
    ImportUploadResponse,
    ImportConfirmRequest,
    ImportStatusResponse,
    ImportLogResponse
)
from taxtrack.services import import_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])

ALLOWED_EXTENSIONS = ['.csv', '.ofx', '.qfx']


@router.post("/upload", response_model=ImportUploadResponse)
async def upload_file(
    file: UploadFile = File(...)
):
    """Upload a statement file and return a preview with the detected layout"""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = '.' + file.filename.split('.')[-1].lower() if '.' in file.filename else ''
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"File type not supported. Allowed: {', '.join(ALLOWED_EXTENSIONS)}"
        )

    content = await file.read()
    file_path, import_id = import_service.save_upload(content, file.filename)
    try:
        return import_service.get_preview(file_path, import_id, file.filename)
    except Exception as e:
        logger.warning("Could not read upload %s: %s", file.filename, e)
        raise HTTPException(status_code=400, detail=f"Could not read file: {e}")


@router.post("/{import_id}/confirm", response_model=ImportStatusResponse)
def confirm_import(
    import_id: str,
    request: ImportConfirmRequest,
    db: Session = Depends(get_db)
):
    """Confirm and process an uploaded file"""
    if import_id not in import_service.PENDING_IMPORTS:
        raise HTTPException(status_code=404, detail=f"Import {import_id} not found or expired")

    try:
        return import_service.process_import(db, import_id, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/history", response_model=list[ImportLogResponse])
def get_import_history(
    limit: int = 20,
    db: Session = Depends(get_db)
):
    """Get import history"""
    logs = import_service.get_import_history(db, limit)
    return [ImportLogResponse.model_validate(log) for log in logs]


@router.get("/{import_id}/status", response_model=ImportStatusResponse)
def get_import_status(
    import_id: str,
    db: Session = Depends(get_db)
):
    """Get status of an import"""
    try:
        return import_service.get_import_status(db, import_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
