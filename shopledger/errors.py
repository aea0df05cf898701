# shopledger/errors.py
"""
Error taxonomy of the ledger core.

Services raise these inside a transaction; `database.atomic` rolls back and
re-raises, and the API layer renders them as JSON with `status_code`.
"""
from decimal import Decimal


class LedgerError(RuntimeError):
    status_code = 400
    code = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Malformed input, detected before anything is mutated."""
    status_code = 400
    code = "validation_error"


class NotFound(LedgerError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            super().__init__(f"{entity} not found")
        else:
            super().__init__(f"{entity} {entity_id} not found")


class InsufficientStock(LedgerError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product {product_name} "
            f"(available: {available}, requested: {requested})"
        )


class OverReturn(LedgerError):
    status_code = 409
    code = "over_return"

    def __init__(self, product_id: int, requested: int, returnable: int):
        self.product_id = product_id
        self.requested = requested
        self.returnable = returnable
        super().__init__(
            f"Cannot return {requested} unit(s) of product {product_id}: "
            f"only {returnable} returnable on this sale"
        )


class RefundExceedsCeiling(LedgerError):
    status_code = 409
    code = "refund_exceeds_ceiling"

    def __init__(self, requested: Decimal, ceiling: Decimal):
        self.requested = requested
        self.ceiling = ceiling
        super().__init__(f"Refund of {requested} exceeds the refundable amount of {ceiling}")


class AlreadyRefunded(LedgerError):
    status_code = 409
    code = "already_refunded"


class Conflict(LedgerError):
    """Unique constraint clash or number allocation exhausted."""
    status_code = 409
    code = "conflict"
