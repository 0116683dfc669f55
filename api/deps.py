from fastapi import HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from models import LoanApplication


async def get_current_user_id(request: Request) -> str:
    """Identity comes from the upstream auth proxy; reject before any business logic."""
    user_id = (request.headers.get(settings.auth_user_header) or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


MSG_APPLICATION_NOT_FOUND = "Application not found"
MSG_FORBIDDEN = "Forbidden"


async def load_owned_application(db: AsyncSession, application_id: str, user_id: str) -> LoanApplication:
    """404 when the application does not exist, 403 when it belongs to someone else."""
    result = await db.execute(select(LoanApplication).where(LoanApplication.id == application_id))
    app = result.scalar_one_or_none()
    if not app:
        raise HTTPException(status_code=404, detail=MSG_APPLICATION_NOT_FOUND)
    if app.user_id != user_id:
        raise HTTPException(status_code=403, detail=MSG_FORBIDDEN)
    return app
