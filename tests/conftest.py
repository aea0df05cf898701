import os

# Must be set before shopledger is imported: the app module creates its tables at import
os.environ.setdefault("SHOPLEDGER_DATABASE_URL", "sqlite://")

import itertools
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from shopledger.crud import contacts as contacts_crud
from shopledger.crud import products as products_crud
from shopledger.database import build_engine, get_db
from shopledger.models import Base
from shopledger.schemas.crm import ContactCreate
from shopledger.schemas.products import ProductCreate
from shopledger.schemas.sales import SaleCreate
from shopledger.services import sales as sales_service


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}", echo=False)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def impatient_session(engine):
    """Second connection to the same database that gives up on a lock after 0.1s."""
    other = build_engine(str(engine.url), echo=False, busy_timeout=0.1)
    session = sessionmaker(autocommit=False, autoflush=False, bind=other)()
    yield session
    session.close()
    other.dispose()



@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    from shopledger.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


_names = itertools.count(1)


@pytest.fixture
def make_product(db):
    def _make(quantity=10, price="100.00", purchase_price="60.00", name=None, **extra):
        product_in = ProductCreate(
            name=name or f"Product {next(_names)}",
            price=Decimal(price),
            purchase_price=Decimal(purchase_price),
            quantity=quantity,
            **extra,
        )
        return products_crud.create_product(db, product_in)
    return _make


@pytest.fixture
def make_contact(db):
    def _make(name=None, **extra):
        return contacts_crud.create_contact(
            db, ContactCreate(name=name or f"Contact {next(_names)}", **extra)
        )
    return _make


@pytest.fixture
def make_sale(db):
    def _make(lines, paid="0", discount="0", contact_id=None, **extra):
        """lines: [(product, quantity, price), ...]"""
        sale_in = SaleCreate(
            items=[
                {"product_id": p.id, "quantity": q, "price": Decimal(price)}
                for p, q, price in lines
            ],
            paid_amount=Decimal(paid),
            discount=Decimal(discount),
            contact_id=contact_id,
            **extra,
        )
        return sales_service.create_sale(db, sale_in)
    return _make
