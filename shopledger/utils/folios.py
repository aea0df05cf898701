import logging
import random
import time
from typing import Callable

from sqlalchemy.orm import Session

from shopledger.core.config import settings
from shopledger.errors import Conflict

logger = logging.getLogger(__name__)


def draw_bill_number() -> str:
    """Random 7-digit bill number (1000000-9999999)."""
    return str(random.randint(1000000, 9999999))


def draw_return_number() -> str:
    """Time-derived return number, e.g. RET-48213307."""
    millis = str(int(time.time() * 1000))[-6:]
    return f"RET-{millis}{random.randint(0, 99):02d}"


def draw_invoice_number() -> str:
    millis = str(int(time.time() * 1000))[-6:]
    return f"BP-{millis}{random.randint(0, 99):02d}"


def allocate_number(
    db: Session,
    column,
    draw: Callable[[], str],
    label: str = "number",
    max_attempts: int = None,
) -> str:
    """
    Draws candidates until one is not yet used in `column`.
    The collision space is small, so the draw is retried a bounded number of
    times; running out is fatal (Conflict). The unique constraint on the
    column still guards against a concurrent writer taking the same value.
    """
    max_attempts = max_attempts or settings.NUMBER_MAX_ATTEMPTS
    model = column.class_

    for attempt in range(1, max_attempts + 1):
        candidate = draw()
        taken = db.query(model.id).filter(column == candidate).first()
        if not taken:
            return candidate
        logger.warning("%s %s already in use (attempt %d/%d)", label, candidate, attempt, max_attempts)

    raise Conflict(f"Could not allocate a unique {label} after {max_attempts} attempts")
