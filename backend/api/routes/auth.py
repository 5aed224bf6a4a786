import logging

from api.errors import Unauthenticated
from db.database import get_db
from fastapi import APIRouter, Depends, Request
from schemas.common import MessageResponse, error_responses
from schemas.user import LoginResponse, UserLogin, UserSummary
from services.activity_log import ActivityLogService
from services.auth import (
    AuthGate,
    RequestContext,
    TokenService,
    get_client_info,
    get_request_context,
)
from services.repository import write_transaction
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses=error_responses(401, 422),
)
async def login(
    login_data: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Exchange email and password for a bearer token.

    Failed attempts are recorded without a user id, keyed by the email that
    was tried.
    """
    client = get_client_info(request)
    activity = ActivityLogService(db)

    user, issued = await AuthGate(db).authenticate(login_data.email, login_data.password)

    if user is None:
        async with write_transaction(db, label="failed login"):
            await activity.login_failed(login_data.email, client)
        raise Unauthenticated("Invalid credentials.")

    async with write_transaction(db, label="login"):
        await activity.login(user.id, client)

    logger.info("User %s logged in from %s", user.id, client.ip_address)
    return LoginResponse(user=UserSummary.model_validate(user), token=issued.token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses=error_responses(401),
)
async def logout(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the token this request was made with."""
    async with write_transaction(db, label="logout"):
        await ActivityLogService(db).logout(context)
        await TokenService(db).revoke(context)

    logger.info("User %s logged out", context.user_id)
    return MessageResponse(message="Logged out")
