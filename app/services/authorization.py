"""Single authorization predicate used by every lease, payment and deposit operation."""
from enum import Enum
from typing import Optional

from app.core.auth import User
from app.core.errors import Unauthenticated, Unauthorized


class Relation(str, Enum):
    TENANT = "tenant"            # the lease's tenant, nobody else
    LANDLORD = "landlord"        # the owning landlord, or an admin
    PARTICIPANT = "participant"  # tenant, owning landlord, or an admin


class Decision(str, Enum):
    ALLOWED = "allowed"
    UNAUTHORIZED = "unauthorized"
    UNAUTHENTICATED = "unauthenticated"


def can_act(principal: Optional[User], target, relation: Relation) -> Decision:
    """
    Decide whether principal holds `relation` to target.

    target is anything carrying landlord_id (and optionally tenant_id):
    a Property, Lease or Deposit.
    """
    if principal is None or not principal.id:
        return Decision.UNAUTHENTICATED

    landlord_id = getattr(target, "landlord_id", None)
    tenant_id = getattr(target, "tenant_id", None)

    if relation is Relation.TENANT:
        allowed = tenant_id is not None and principal.id == tenant_id
    elif relation is Relation.LANDLORD:
        allowed = principal.is_admin or principal.id == landlord_id
    else:
        allowed = principal.is_admin or principal.id in (landlord_id, tenant_id)

    return Decision.ALLOWED if allowed else Decision.UNAUTHORIZED


def authorize(principal: Optional[User], target, relation: Relation, message: str) -> User:
    decision = can_act(principal, target, relation)
    if decision is Decision.UNAUTHENTICATED:
        raise Unauthenticated()
    if decision is Decision.UNAUTHORIZED:
        raise Unauthorized(message)
    return principal


def require_principal(principal: Optional[User]) -> User:
    if principal is None or not principal.id:
        raise Unauthenticated()
    return principal
