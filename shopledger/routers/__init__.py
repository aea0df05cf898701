# shopledger/routers/__init__.py

# Exposes the modules so "from shopledger.routers import sales" works
from . import products
from . import inventory
from . import sales
from . import returns
from . import purchases
from . import contacts
