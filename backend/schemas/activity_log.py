from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ActivityLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    entity_name: Optional[str] = None
    description: Optional[str] = None
    ip_address: Optional[str] = None
    method: Optional[str] = None
    url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
