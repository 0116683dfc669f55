from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, ValidationError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user_id, load_owned_application
from api.errors import format_errors, invalid_request
from database import get_db
from models import APPLICATION_STATUSES, Document, LoanApplication
from schemas.application import ApplicationCreate, ApplicationUpdate
from services.metrics import compute_metrics
from services.notifications import EmailNotifier, NotificationError, get_notifier
from services.object_storage import ObjectStorage, ObjectStorageError, get_object_storage
from services.submission import dispatch_submission
from utils.case import columns_to_camel, isoformat_or_none, row_to_camel
from utils.log import get_logger
from wizard.validation import get_all_step_validations

router = APIRouter(prefix="/api/applications", tags=["applications"])
logger = get_logger(__name__)


def _app_to_response(app: LoanApplication) -> dict[str, Any]:
    """Serialize application to dict with camelCase for frontend."""
    return {
        "id": app.id,
        "userId": app.user_id,
        **row_to_camel(app),
        "ltv": app.ltv,
        "dscr": app.dscr,
        "monthlyInterest": app.monthly_interest,
        "submittedAt": isoformat_or_none(app.submitted_at),
        "createdAt": isoformat_or_none(app.created_at),
        "updatedAt": isoformat_or_none(app.updated_at),
    }


def _parse_body(schema: type[BaseModel], body: dict[str, Any]) -> Any:
    if "userId" in body:
        raise invalid_request([{"path": ["userId"], "message": "userId cannot be modified"}])
    try:
        return schema.model_validate(body)
    except ValidationError as e:
        raise invalid_request(format_errors(e.errors())) from e


def _metric_columns(data: dict[str, Any]) -> dict[str, Any]:
    """Always overwrite all three, so a metric whose inputs were cleared goes back to null."""
    metrics = compute_metrics(data)
    return {
        "ltv": metrics.get("ltv"),
        "dscr": metrics.get("dscr"),
        "monthly_interest": metrics.get("monthlyInterest"),
    }


def _status_rank(status: str) -> int:
    return APPLICATION_STATUSES.index(status)


@router.get("")
async def list_applications(
    user_id: str = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(LoanApplication)
        .where(LoanApplication.user_id == user_id)
        .order_by(LoanApplication.updated_at.desc(), LoanApplication.created_at.desc())
    )
    apps = result.scalars().all()
    return [_app_to_response(a) for a in apps]


@router.get("/{application_id}")
async def get_application(
    application_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    app = await load_owned_application(db, application_id, user_id)
    return _app_to_response(app)


@router.get("/{application_id}/progress")
async def get_application_progress(
    application_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Per-step missing required fields, as the wizard computes them."""
    app = await load_owned_application(db, application_id, user_id)
    validations = get_all_step_validations(_app_to_response(app))
    return {
        "applicationId": app.id,
        "currentStep": app.current_step,
        "steps": [
            {"stepId": v.step_id, "missingFields": list(v.missing_fields), "isComplete": v.is_complete}
            for v in validations
        ],
    }


@router.post("", status_code=201)
async def create_application(
    body: dict[str, Any] = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    parsed = _parse_body(ApplicationCreate, body)
    columns = parsed.to_columns()
    if columns.get("status", "draft") != "draft":
        raise invalid_request([{"path": ["status"], "message": "New applications start as draft"}])
    columns["status"] = "draft"
    columns.update(_metric_columns(columns_to_camel(columns)))

    now = datetime.now(timezone.utc)
    app = LoanApplication(
        id=f"app-{uuid.uuid4().hex[:12]}",
        user_id=user_id,
        created_at=now,
        updated_at=now,
        **columns,
    )
    db.add(app)
    await db.flush()
    await db.refresh(app)
    logger.info("Created application %s for user %s", app.id, user_id)
    return _app_to_response(app)


@router.patch("/{application_id}")
async def update_application(
    application_id: str,
    body: dict[str, Any] = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
    notifier: EmailNotifier = Depends(get_notifier),
):
    app = await load_owned_application(db, application_id, user_id)
    parsed = _parse_body(ApplicationUpdate, body)
    values = parsed.to_columns()

    new_status = values.get("status")
    if new_status is None:
        values.pop("status", None)
    elif _status_rank(new_status) < _status_rank(app.status):
        raise invalid_request(
            [{"path": ["status"], "message": f"Cannot move status from {app.status} back to {new_status}"}]
        )

    merged = {**_app_to_response(app), **columns_to_camel(values)}
    values.update(_metric_columns(merged))
    now = datetime.now(timezone.utc)
    values["updated_at"] = now

    stmt = update(LoanApplication).where(LoanApplication.id == app.id)
    submitting = new_status == "submitted" and app.status != "submitted"
    if submitting:
        # The status guard lives in the same UPDATE, so only one request can win the transition.
        values["submitted_at"] = now
        stmt = stmt.where(LoanApplication.status != "submitted")
    result = await db.execute(stmt.values(**values).execution_options(synchronize_session=False))
    transitioned = submitting and result.rowcount == 1
    if submitting and not transitioned:
        # Another request submitted first; keep its submitted_at and still apply the other fields.
        values.pop("submitted_at")
        await db.execute(
            update(LoanApplication)
            .where(LoanApplication.id == app.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
    await db.refresh(app)
    response = _app_to_response(app)

    if transitioned:
        await db.commit()
        logger.info("Application %s submitted", app.id)
        docs_result = await db.execute(select(Document).where(Document.application_id == app.id))
        try:
            await dispatch_submission(response, docs_result.scalars().all(), storage, notifier)
        except (ObjectStorageError, NotificationError) as e:
            logger.error("Submission notification failed for %s: %s", app.id, e)
            raise HTTPException(
                status_code=502,
                detail="Application was submitted, but the notification could not be sent",
            ) from e
    return response


@router.delete("/{application_id}", status_code=204)
async def delete_application(
    application_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    app = await load_owned_application(db, application_id, user_id)
    docs_result = await db.execute(select(Document).where(Document.application_id == app.id))
    for doc in docs_result.scalars().all():
        if doc.storage_path:
            try:
                await storage.delete(doc.storage_path)
            except ObjectStorageError as e:
                logger.error("Failed to delete %s while deleting application %s: %s", doc.storage_path, app.id, e)
                # Keep the rows whose blobs were already removed in step with storage.
                await db.commit()
                raise HTTPException(status_code=502, detail="Failed to delete file from storage") from e
        await db.delete(doc)
        await db.flush()
    await db.delete(app)
    await db.flush()
    logger.info("Deleted application %s", app.id)
    return None
