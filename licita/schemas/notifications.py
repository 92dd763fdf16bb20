from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import datetime

class NotificationOut(BaseModel):
    id: str
    user_id: Optional[str] = None
    role: Optional[str] = None
    type: str
    title: str
    message: str
    payload: Optional[Dict[str, Any]] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: List[NotificationOut]
    total: int
    page: int
    per_page: int
