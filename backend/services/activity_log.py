"""Append-only activity log writer for auth events and entity changes."""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from models.activity_log import ActivityLog
from services.auth import ClientInfo, RequestContext

logger = logging.getLogger(__name__)

# Never written to old/new values.
_HIDDEN_ATTRIBUTES = frozenset({"password"})
_SKIPPED_ATTRIBUTES = frozenset({"id", "created_at", "updated_at"})


def _json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def loggable_attributes(entity: Any) -> Dict[str, Any]:
    """Column values of ``entity`` without identifiers, timestamps or secrets."""
    mapper = sa_inspect(entity).mapper
    values = {}
    for column in mapper.column_attrs:
        key = column.key
        if key in _SKIPPED_ATTRIBUTES or key in _HIDDEN_ATTRIBUTES:
            continue
        values[key] = _json_value(getattr(entity, key))
    return values


def entity_type_of(entity: Any) -> str:
    return type(entity).__name__


def entity_name_of(entity: Any) -> Optional[str]:
    name = getattr(entity, "name", None)
    return str(name)[:255] if name is not None else None


def _dump(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


class ActivityLogService:
    """Writes activity log rows in the caller's transaction (flush, no commit)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: str,
        *,
        user_id: Optional[int] = None,
        client: Optional[ClientInfo] = None,
        entity: Any = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        changed_fields: Optional[Iterable[str]] = None,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ActivityLog:
        client = client or ClientInfo()
        entry = ActivityLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type_of(entity) if entity is not None else None,
            entity_id=getattr(entity, "id", None) if entity is not None else None,
            entity_name=entity_name_of(entity) if entity is not None else None,
            old_values=_dump(old_values),
            new_values=_dump(new_values),
            changed_fields=_dump(list(changed_fields)) if changed_fields else None,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            method=client.method,
            url=client.url,
            description=description,
            metadata_json=_dump(metadata),
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    # Authentication events

    async def login(self, user_id: int, client: ClientInfo) -> ActivityLog:
        return await self.log(
            ActivityLog.ACTION_LOGIN,
            user_id=user_id,
            client=client,
            description="User logged in",
        )

    async def login_failed(self, email: str, client: ClientInfo) -> ActivityLog:
        logger.warning("Failed login attempt for %s from %s", email, client.ip_address)
        return await self.log(
            ActivityLog.ACTION_LOGIN_FAILED,
            client=client,
            description=f"Failed login attempt for {email}",
            metadata={"email": email},
        )

    async def logout(self, context: RequestContext) -> ActivityLog:
        return await self.log(
            ActivityLog.ACTION_LOGOUT,
            user_id=context.user_id,
            client=context.client,
            description="User logged out",
        )

    # Entity events

    async def created(
        self,
        context: RequestContext,
        entity: Any,
        extra_values: Optional[Dict[str, Any]] = None,
    ) -> ActivityLog:
        new_values = loggable_attributes(entity)
        new_values.update(extra_values or {})
        return await self.log(
            ActivityLog.ACTION_CREATED,
            user_id=context.user_id,
            client=context.client,
            entity=entity,
            new_values=new_values,
            description=f"{entity_type_of(entity)} created",
        )

    async def updated(
        self,
        context: RequestContext,
        entity: Any,
        old_values: Dict[str, Any],
        new_values: Dict[str, Any],
    ) -> Optional[ActivityLog]:
        """
        Log the keys whose value differs between ``old_values`` and
        ``new_values``. Nothing is written when nothing changed.
        """
        changed = [
            key
            for key in new_values
            if key not in _HIDDEN_ATTRIBUTES and old_values.get(key) != new_values[key]
        ]
        password_changed = (
            "password" in new_values and old_values.get("password") != new_values["password"]
        )
        if not changed and not password_changed:
            return None

        return await self.log(
            ActivityLog.ACTION_UPDATED,
            user_id=context.user_id,
            client=context.client,
            entity=entity,
            old_values={key: old_values.get(key) for key in changed},
            new_values={key: new_values[key] for key in changed},
            changed_fields=changed + (["password"] if password_changed else []),
            description=f"{entity_type_of(entity)} updated",
        )

    async def deleted(self, context: RequestContext, entity: Any) -> ActivityLog:
        return await self.log(
            ActivityLog.ACTION_DELETED,
            user_id=context.user_id,
            client=context.client,
            entity=entity,
            old_values=loggable_attributes(entity),
            description=f"{entity_type_of(entity)} deleted",
        )
