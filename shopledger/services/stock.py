# shopledger/services/stock.py
"""
Stock ledger: the only code allowed to change Product.quantity.

Nothing here commits. Every function runs inside the caller's transaction
(see database.atomic) so a failure later in the same operation rolls the
stock change back together with everything else.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from shopledger.errors import InsufficientStock, NotFound, ValidationError
from shopledger.models import InventoryMovement, MovementType, Product

logger = logging.getLogger(__name__)


def _positive_qty(qty) -> int:
    if qty is None or int(qty) != qty or int(qty) <= 0:
        raise ValidationError(f"Quantity must be a positive whole number, got {qty!r}")
    return int(qty)


def get_product_for_update(db: Session, product_id: int) -> Product:
    # Pending ORM changes must reach the database before the row is re-read
    db.flush()
    # FOR UPDATE locks the row on engines that support it (no-op on SQLite)
    product = (
        db.query(Product)
        .filter(Product.id == product_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not product:
        raise NotFound("Product", product_id)
    return product


def _record_movement(
    db: Session,
    product: Product,
    qty_change: int,
    movement_type: MovementType,
    reference: Optional[str],
    notes: Optional[str],
) -> InventoryMovement:
    movement = InventoryMovement(
        product_id=product.id,
        movement_type=movement_type,
        qty_change=qty_change,
        qty_before=product.quantity - qty_change,
        qty_after=product.quantity,
        reference=reference,
        notes=notes,
    )
    db.add(movement)
    return movement


def reserve(
    db: Session,
    product_id: int,
    qty: int,
    movement_type: MovementType = MovementType.ADJUSTMENT_OUT,
    reference: str = None,
    notes: str = None,
) -> Product:
    """
    Takes `qty` units out of stock.

    The sufficiency check and the decrement are one guarded UPDATE, so two
    concurrent callers can never both pass the check against a stale quantity.
    Raises InsufficientStock (quantity untouched) when stock is short.
    """
    qty = _positive_qty(qty)
    product = get_product_for_update(db, product_id)

    updated = (
        db.query(Product)
        .filter(Product.id == product_id, Product.quantity >= qty)
        .update({Product.quantity: Product.quantity - qty}, synchronize_session=False)
    )
    db.refresh(product)

    if not updated:
        raise InsufficientStock(product.id, product.name, available=product.quantity, requested=qty)

    _record_movement(db, product, -qty, movement_type, reference, notes)
    logger.debug("Stock -%d for product %s (%s), now %d", qty, product.id, movement_type.value, product.quantity)
    return product


def release(
    db: Session,
    product_id: int,
    qty: int,
    movement_type: MovementType = MovementType.ADJUSTMENT_IN,
    reference: str = None,
    notes: str = None,
) -> Product:
    """Puts `qty` units back into stock."""
    qty = _positive_qty(qty)
    product = get_product_for_update(db, product_id)

    db.query(Product).filter(Product.id == product_id).update(
        {Product.quantity: Product.quantity + qty}, synchronize_session=False
    )
    db.refresh(product)

    _record_movement(db, product, qty, movement_type, reference, notes)
    logger.debug("Stock +%d for product %s (%s), now %d", qty, product.id, movement_type.value, product.quantity)
    return product


def adjust(db: Session, product_id: int, delta: int, reason: str = None, notes: str = None) -> InventoryMovement:
    """Manual correction: positive delta adds stock, negative removes it."""
    if not delta:
        raise ValidationError("Adjustment quantity cannot be zero")

    if delta > 0:
        release(db, product_id, delta, MovementType.ADJUSTMENT_IN, reference=reason, notes=notes)
    else:
        reserve(db, product_id, -delta, MovementType.ADJUSTMENT_OUT, reference=reason, notes=notes)

    db.flush()
    return (
        db.query(InventoryMovement)
        .filter(InventoryMovement.product_id == product_id)
        .order_by(InventoryMovement.id.desc())
        .first()
    )


# --- Damaged goods ---

def mark_damaged(db: Session, product_id: int, qty: int) -> Product:
    """Moves sellable units to the damaged pile."""
    qty = _positive_qty(qty)
    product = reserve(db, product_id, qty, MovementType.DAMAGE_OUT, reference="Marked as damaged")

    db.query(Product).filter(Product.id == product_id).update(
        {Product.damaged_quantity: Product.damaged_quantity + qty}, synchronize_session=False
    )
    db.refresh(product)
    return product


def restore_damaged(db: Session, product_id: int, qty: int = None) -> Product:
    """Moves damaged units back to sellable stock. Without qty, restores all of them."""
    product = get_product_for_update(db, product_id)
    damaged = product.damaged_quantity or 0
    qty = _positive_qty(damaged if qty is None else qty)

    updated = (
        db.query(Product)
        .filter(Product.id == product_id, Product.damaged_quantity >= qty)
        .update({Product.damaged_quantity: Product.damaged_quantity - qty}, synchronize_session=False)
    )
    if not updated:
        raise ValidationError(
            f"Cannot restore {qty} unit(s) of {product.name}: only {damaged} marked as damaged"
        )

    return release(db, product_id, qty, MovementType.DAMAGE_RESTORE, reference="Restored from damaged")


def movements_for(db: Session, product_id: int, limit: int = 100) -> List[InventoryMovement]:
    if not db.query(Product.id).filter(Product.id == product_id).first():
        raise NotFound("Product", product_id)
    return (
        db.query(InventoryMovement)
        .filter(InventoryMovement.product_id == product_id)
        .order_by(InventoryMovement.id.desc())
        .limit(limit)
        .all()
    )
