# backend/app/core/rbac.py
"""
Tenant-scoped Role-Based Access Control

Rules, evaluated in order:
  1. platform_admin -> allow (bypasses tenant scoping)
  2. caller tenant != target tenant -> deny TENANT_ACCESS_DENIED
  3. caller rank < required rank -> deny INSUFFICIENT_ROLE
  4. allow

``check_access`` only decides; callers log and raise.
"""
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from app.core.constants import IDENTIFIER_PATTERN, ROLE_RANK, UserRole
from app.core.errors import ErrorCode

_IDENTIFIER = re.compile(IDENTIFIER_PATTERN)


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[ErrorCode] = None


ALLOW = AccessDecision(allowed=True)


def _coerce_role(role: Union[UserRole, str, None]) -> UserRole:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        raise ValueError(f"Unknown role: {role!r}")


def role_rank(role: Union[UserRole, str]) -> int:
    """Rank of a tenant role (platform_admin ranks above every tenant role)"""
    role = _coerce_role(role)
    if role is UserRole.PLATFORM_ADMIN:
        return max(ROLE_RANK.values()) + 1
    return ROLE_RANK[role]


def is_valid_identifier(value: Any) -> bool:
    return isinstance(value, str) and bool(_IDENTIFIER.match(value))


def check_access(
    caller: Any,
    target_tenant_id: Optional[str],
    required_role: Union[UserRole, str] = UserRole.EMPLOYEE,
) -> AccessDecision:
    """
    Decide whether ``caller`` may act on a resource owned by ``target_tenant_id``.

    Args:
        caller: Resolved user record exposing ``role`` and ``tenant_id``
        target_tenant_id: Tenant owning the resource
        required_role: Lowest tenant role allowed to perform the operation

    Returns:
        AccessDecision with the denial reason when not allowed

    Raises:
        ValueError: On a missing caller, malformed tenant id or unknown role
    """
    if caller is None:
        raise ValueError("caller is required")

    caller_role = _coerce_role(getattr(caller, "role", None))
    required = _coerce_role(required_role)

    if not is_valid_identifier(target_tenant_id):
        raise ValueError(f"Invalid target tenant id: {target_tenant_id!r}")

    if caller_role is UserRole.PLATFORM_ADMIN:
        return ALLOW

    if getattr(caller, "tenant_id", None) != target_tenant_id:
        return AccessDecision(allowed=False, reason=ErrorCode.TENANT_ACCESS_DENIED)

    if role_rank(caller_role) < role_rank(required):
        return AccessDecision(allowed=False, reason=ErrorCode.INSUFFICIENT_ROLE)

    return ALLOW
