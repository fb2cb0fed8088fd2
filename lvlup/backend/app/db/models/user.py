# backend/app/db/models/user.py
from sqlalchemy import Column, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from app.core.constants import UserRole
from app.db.base import BaseModel, new_id


class User(BaseModel):
    """Authenticated identity. Non-platform users belong to exactly one tenant."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)

    # Profile
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    timezone = Column(String(64), default="UTC", nullable=False)

    # Tenant relationship (null only for platform admins)
    tenant_id = Column(String(100), ForeignKey("tenants.id"), nullable=True, index=True)
    role = Column(String(50), default=UserRole.EMPLOYEE.value, nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    tenant = relationship("Tenant", back_populates="users")
    employee = relationship("Employee", back_populates="user", uselist=False)
    notification_preferences = relationship(
        "NotificationPreferences", back_populates="user", uselist=False
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.email
