# shopledger/models/__init__.py

# 1. Declarative base
from shopledger.database import Base

# 2. Catalog and kardex
from .products import Product
from .inventory import InventoryMovement, MovementType

# 3. Contacts and loans
from .crm import Contact, LoanTransaction, LoanType

# 4. Sales, returns and purchases
from .sales import Sale, SaleItem, RefundState
from .returns import SaleReturn, SaleReturnItem
from .purchases import BulkPurchase, BulkPurchaseItem
