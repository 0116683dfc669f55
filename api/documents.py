from __future__ import annotations

import re
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user_id, load_owned_application
from api.errors import invalid_request
from config import settings
from database import get_db
from models import Document
from services.object_storage import (
    ObjectStorage,
    ObjectStorageError,
    ObjectStorageNotConfigured,
    get_object_storage,
    get_private_object_dir,
)
from utils.case import isoformat_or_none
from utils.files import format_file_size
from utils.log import get_logger

router = APIRouter(prefix="/api/applications", tags=["documents"])
logger = get_logger(__name__)

MSG_DOCUMENT_NOT_FOUND = "Document not found"
MSG_STORAGE_NOT_CONFIGURED = "Object storage is not configured"


def _document_to_response(doc: Document) -> dict[str, Any]:
    return {
        "id": doc.id,
        "applicationId": doc.application_id,
        "userId": doc.user_id,
        "name": doc.name,
        "type": doc.type,
        "fileType": doc.file_type,
        "fileSize": doc.file_size,
        "status": doc.status,
        "storagePath": doc.storage_path,
        "uploadedAt": isoformat_or_none(doc.uploaded_at),
        "createdAt": isoformat_or_none(doc.created_at),
    }


def _safe_filename(filename: str) -> str:
    """Keep only the base name, with anything outside [A-Za-z0-9._-] replaced."""
    name = re.sub(r"[^A-Za-z0-9._-]", "_", Path(filename).name).strip("._")
    return name or "upload"


@router.post("/{application_id}/documents", status_code=201)
async def upload_document(
    application_id: str,
    doc_type: str = Form(..., alias="type"),
    name: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """
    Upload bytes to object storage first, then record the metadata row.
    Without a file the row is a "pending" placeholder the borrower fills in later.
    """
    app = await load_owned_application(db, application_id, user_id)
    doc_type = doc_type.strip()
    if not doc_type:
        raise invalid_request([{"path": ["type"], "message": "Document type is required"}])
    display_name = (name or "").strip() or (file.filename if file and file.filename else "")
    if not display_name:
        raise invalid_request([{"path": ["name"], "message": "Document name or file is required"}])

    storage_path = None
    content = b""
    if file is not None:
        content = await file.read()
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(status_code=413, detail="File exceeds the 10 MB upload limit")
        try:
            private_dir = get_private_object_dir()
            storage_path = f"{private_dir}/{app.id}/{int(time.time() * 1000)}-{_safe_filename(file.filename or display_name)}"
            await storage.upload_from_bytes(storage_path, content)
        except ObjectStorageNotConfigured as e:
            logger.error("Document upload for %s: %s", app.id, e)
            raise HTTPException(status_code=500, detail=MSG_STORAGE_NOT_CONFIGURED) from e
        except ObjectStorageError as e:
            logger.error("Object storage upload failed for %s: %s", app.id, e)
            raise HTTPException(status_code=502, detail="Failed to upload file to storage") from e

    now = datetime.now(timezone.utc)
    doc = Document(
        id=f"doc-{uuid.uuid4().hex[:12]}",
        application_id=app.id,
        user_id=user_id,
        name=display_name,
        type=doc_type,
        file_type=file.content_type.split("/")[-1] if file is not None and file.content_type else None,
        file_size=format_file_size(len(content)) if file is not None else None,
        status="uploaded" if file is not None else "pending",
        storage_path=storage_path,
        uploaded_at=now if file is not None else None,
        created_at=now,
    )
    db.add(doc)
    try:
        await db.flush()
    except SQLAlchemyError:
        if storage_path:
            try:
                await storage.delete(storage_path)
            except ObjectStorageError as cleanup_error:
                logger.error("Orphaned object %s left in storage: %s", storage_path, cleanup_error)
        raise
    logger.info("Stored document %s (%s) for application %s", doc.id, doc.type, app.id)
    return _document_to_response(doc)


@router.get("/{application_id}/documents")
async def list_documents(
    application_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    app = await load_owned_application(db, application_id, user_id)
    result = await db.execute(
        select(Document).where(Document.application_id == app.id).order_by(Document.created_at.desc())
    )
    return [_document_to_response(d) for d in result.scalars().all()]


@router.delete("/{application_id}/documents/{document_id}", status_code=204)
async def delete_document(
    application_id: str,
    document_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """Storage first, then the row; if the blob cannot be removed the row stays."""
    result = await db.execute(select(Document).where(Document.id == document_id))
    doc = result.scalar_one_or_none()
    if not doc or doc.application_id != application_id:
        raise HTTPException(status_code=404, detail=MSG_DOCUMENT_NOT_FOUND)
    if doc.user_id != user_id:
        raise HTTPException(status_code=403, detail="Forbidden")

    if doc.storage_path:
        try:
            await storage.delete(doc.storage_path)
        except ObjectStorageNotConfigured as e:
            logger.error("Document delete for %s: %s", doc.id, e)
            raise HTTPException(status_code=500, detail=MSG_STORAGE_NOT_CONFIGURED) from e
        except ObjectStorageError as e:
            logger.error("Object storage deletion failed for %s: %s", doc.storage_path, e)
            raise HTTPException(status_code=502, detail="Failed to delete file from storage") from e

    await db.delete(doc)
    await db.flush()
    logger.info("Deleted document %s from application %s", doc.id, application_id)
    return None
