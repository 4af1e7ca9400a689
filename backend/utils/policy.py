"""Role and ownership based access policy.

Every staff permission in the API goes through ``is_allowed`` so that role
rules live in one table instead of being repeated per handler. Staff users
have ``role == "ADMIN"`` and a ``sub_role``; website shoppers have role
``USER`` and no staff permissions at all.
"""
from typing import Optional

from utils.errors import AuthorizationError

ELEVATED = frozenset({"IT", "MANAGER", "DIRECTOR"})

# action -> staff roles allowed to perform it
RULES = {
    "stock:update": frozenset({"WAREHOUSE"}),
    "stock:bulk_update": frozenset({"WAREHOUSE"}),
    "stock:reconcile": frozenset({"WAREHOUSE", "IT", "DIRECTOR"}),
    "stock:disable_override": frozenset({"WAREHOUSE", "IT", "DIRECTOR"}),
    "stock:sync_all": frozenset({"IT", "DIRECTOR"}),
    "stock:view": frozenset({"WAREHOUSE", "SALES", "EDITOR"}) | ELEVATED,
    "warehouse:settings": frozenset({"IT", "DIRECTOR"}),
    "warehouse:toggle": frozenset({"IT", "DIRECTOR"}),
    "batch:manage": frozenset({"WAREHOUSE", "IT", "DIRECTOR"}),
    "product:manage": frozenset({"WAREHOUSE", "EDITOR"}) | ELEVATED,
    "catalog:manage": ELEVATED,
    "customer:create": frozenset({"SALES", "EDITOR"}) | ELEVATED,
    "customer:view": frozenset({"SALES", "EDITOR"}) | ELEVATED,
    "customer:update": frozenset({"SALES", "EDITOR"}) | ELEVATED,
    "order:create_manual": frozenset({"SALES"}) | ELEVATED,
    "order:view": frozenset({"SALES"}) | ELEVATED,
    "order:update_status": frozenset({"SALES"}) | ELEVATED,
    "order:analytics": frozenset({"SALES"}) | ELEVATED,
}

# Actions where non-elevated staff are limited to resources they own
OWNERSHIP_SCOPED = {
    "customer:view",
    "customer:update",
    "order:create_manual",
    "order:view",
    "order:update_status",
}


def staff_role(user) -> Optional[str]:
    """Acting staff role of a user, or None for website shoppers."""
    if user is None or (user.role or "").upper() != "ADMIN":
        return None
    return (user.sub_role or user.role).upper()


def is_elevated(user) -> bool:
    return staff_role(user) in ELEVATED


def _owns(user, resource) -> bool:
    # Customers and manual orders both record the creating agent in created_by;
    # website customers and website orders are open to every sales agent.
    if getattr(resource, "is_website_customer", False) or getattr(resource, "is_website_order", False):
        return True
    return resource.created_by is not None and resource.created_by == user.id


def is_allowed(user, action: str, resource=None) -> bool:
    role = staff_role(user)
    if role is None:
        return False
    allowed = RULES.get(action)
    if allowed is None or role not in allowed:
        return False
    if action in OWNERSHIP_SCOPED and resource is not None and role not in ELEVATED:
        return _owns(user, resource)
    return True


def authorize(user, action: str, resource=None) -> None:
    if is_allowed(user, action, resource):
        return
    allowed = RULES.get(action, frozenset())
    role = staff_role(user)
    if role in allowed:
        raise AuthorizationError(f"Forbidden: requires ownership or one of {', '.join(sorted(ELEVATED))}")
    raise AuthorizationError(f"Forbidden: requires one of {', '.join(sorted(allowed))}")
