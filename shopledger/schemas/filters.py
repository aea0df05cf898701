# shopledger/schemas/filters.py
"""
Typed query filters, one per list endpoint.
Routers take them as `Annotated[Filter, Query()]`, so every field is a query parameter.
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field

from shopledger.core.config import settings


class ListFilter(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
    search: Optional[str] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def search_term(self) -> Optional[str]:
        term = (self.search or "").strip()
        return term or None


class DateRangeFilter(ListFilter):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProductFilter(ListFilter):
    pass


class SaleFilter(DateRangeFilter):
    contact_id: Optional[int] = None


class ReturnFilter(DateRangeFilter):
    sale_id: Optional[int] = None


class PurchaseFilter(DateRangeFilter):
    contact_id: Optional[int] = None


class ContactFilter(ListFilter):
    pass
