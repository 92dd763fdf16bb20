from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from licita.models.enums import Permission

class PermissionGrant(BaseModel):
    permission: Permission
    expires_at: Optional[datetime] = None

    class Config:
        use_enum_values = True


class PermissionOut(BaseModel):
    id: str
    user_id: str
    permission: str
    is_active: bool
    granted_by: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
