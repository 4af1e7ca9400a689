# backend/services/settings.py
from sqlalchemy.orm import Session

from models.settings import WarehouseSettings

SETTINGS_ID = 1


def get_warehouse_settings(db: Session) -> WarehouseSettings:
    """Returns the warehouse settings row, creating it with defaults on first use."""
    row = db.get(WarehouseSettings, SETTINGS_ID)
    if row is None:
        row = WarehouseSettings(
            id=SETTINGS_ID,
            enabled=True,
            auto_sync_enabled=True,
            low_stock_threshold=10,
            critical_stock_threshold=5,
            notification_emails=[],
        )
        db.add(row)
        db.flush()
    return row
