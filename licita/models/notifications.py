from sqlalchemy import Column, String, Text, DateTime, Boolean, JSON, ForeignKey
from licita.core.clock import utcnow
from licita.models.base import Base, new_id

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    role = Column(String, nullable=True, index=True)  # роль, через которую разослано уведомление
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSON)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
