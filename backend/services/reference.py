# backend/services/reference.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from models.reference import ExchangeRate

logger = logging.getLogger(__name__)


def get_rate(db: Session, from_currency: str, to_currency: str) -> Optional[float]:
    """Conversion rate from one currency to another using the stored table."""
    src, dst = from_currency.upper(), to_currency.upper()
    if src == dst:
        return 1.0

    direct = db.query(ExchangeRate).filter(
        ExchangeRate.base_currency == src,
        ExchangeRate.target_currency == dst,
        ExchangeRate.is_active.is_(True),
    ).first()
    if direct and direct.rate > 0:
        return direct.rate

    reverse = db.query(ExchangeRate).filter(
        ExchangeRate.base_currency == dst,
        ExchangeRate.target_currency == src,
        ExchangeRate.is_active.is_(True),
    ).first()
    if reverse and reverse.rate > 0:
        return 1 / reverse.rate
    return None


def convert(db: Session, amount: float, from_currency: str, to_currency: str) -> float:
    rate = get_rate(db, from_currency, to_currency)
    if rate is None:
        logger.warning("No exchange rate %s->%s, amount left unconverted", from_currency, to_currency)
        return amount
    return round(amount * rate, 2)
