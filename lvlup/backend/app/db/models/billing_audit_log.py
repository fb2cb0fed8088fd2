# backend/app/db/models/billing_audit_log.py
from sqlalchemy import Column, String, ForeignKey, JSON, Text
from sqlalchemy.orm import relationship

from app.db.base import BaseModel, new_id


class BillingAuditLog(BaseModel):
    """Audit trail of plan changes made to a tenant"""
    __tablename__ = "billing_audit_logs"

    id = Column(String(36), primary_key=True, default=new_id, index=True)
    tenant_id = Column(String(100), ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)

    # Action details
    action = Column(String(100), nullable=False, index=True)  # tier_change, activate, deactivate
    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    description = Column(Text, nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="billing_audit_logs")
