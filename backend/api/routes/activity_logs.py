from typing import Optional

from db.database import get_db
from fastapi import APIRouter, Depends, Query
from schemas.activity_log import ActivityLogResponse
from schemas.common import Page, error_responses
from schemas.validators import MAX_ID
from services.auth import RequestContext, get_request_context
from services.pagination import PageParams, page_params
from services.repository import ActivityLogRepository
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/activity-logs",
    tags=["activity-logs"],
    responses=error_responses(401),
)


@router.get("", response_model=Page[ActivityLogResponse])
async def list_activity_logs(
    action: Optional[str] = Query(None, max_length=50),
    user_id: Optional[int] = Query(None, ge=1, le=MAX_ID),
    params: PageParams = Depends(page_params),
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Activity log entries, newest first. Read only."""
    repo = ActivityLogRepository(db)
    return await repo.list_page(
        params,
        query=repo.filtered(action=action, user_id=user_id),
        transform=ActivityLogResponse.model_validate,
    )
