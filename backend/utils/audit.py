import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from models.activity import WarehouseActivity

logger = logging.getLogger(__name__)


def diff_fields(before: dict, after: dict) -> dict:
    """Per-field {"from", "to"} map of the values that changed."""
    return {
        key: {"from": before.get(key), "to": value}
        for key, value in after.items()
        if before.get(key) != value
    }


def log_activity(
    db: Session,
    *,
    user,
    action: str,
    target_type: str,
    target_id: Optional[int] = None,
    target_name: Optional[str] = None,
    target_sku: Optional[str] = None,
    changes: Optional[dict] = None,
    notes: str = "",
    request: Optional[Request] = None,
    commit: bool = True,
):
    """Appends a warehouse activity record.

    With ``commit=False`` the entry joins the caller's transaction. Otherwise it
    is committed on its own and failures are logged, never raised, since the
    audited change has already been saved.
    """
    entry = WarehouseActivity(
        user_id=user.id if user is not None else None,
        action=action,
        target_type=target_type,
        target_id=target_id,
        target_name=target_name,
        target_sku=target_sku,
        changes=changes or None,
        notes=notes,
        ip=request.client.host if request is not None and request.client else None,
        user_agent=request.headers.get("user-agent") if request is not None else None,
    )
    if not commit:
        db.add(entry)
        return entry
    try:
        db.add(entry)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("Failed to write warehouse activity %s: %s", action, e)
        return None
    return entry
