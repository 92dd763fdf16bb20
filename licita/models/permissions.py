from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, UniqueConstraint
from licita.core.clock import utcnow
from licita.models.base import Base, new_id

class UserPermission(Base):
    __tablename__ = "user_permissions"
    __table_args__ = (UniqueConstraint("user_id", "permission", name="uq_user_permission"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    permission = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    granted_by = Column(String(36))
    expires_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
