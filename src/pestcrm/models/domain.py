"""Domain models for visits, material sales, pricing and schedules."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

VisitStatus = Literal["planned", "completed", "cancelled"]
CheckedState = Literal["all", "checked", "unchecked"]


@dataclass(slots=True, frozen=True)
class ProductRef:
    """Product sold during a visit, as embedded in a sale line item."""

    id: Optional[str]
    name: str
    unit: Optional[str] = None


@dataclass(slots=True, frozen=True)
class SaleLineItem:
    product: Optional[ProductRef]
    quantity: Decimal
    unit_price: Optional[Decimal] = None


@dataclass(slots=True, frozen=True)
class MaterialSale:
    """A paid material sale recorded against a visit."""

    id: str
    visit_id: str
    total_amount: Decimal
    items: tuple[SaleLineItem, ...] = ()


@dataclass(slots=True, frozen=True)
class Visit:
    """A service visit to a customer, optionally at one of its branches."""

    id: str
    customer_id: str
    visit_date: datetime
    status: str
    is_checked: bool = False
    branch_id: Optional[str] = None
    operator_id: Optional[str] = None
    customer_name: Optional[str] = None
    branch_name: Optional[str] = None
    operator_name: Optional[str] = None
    material_sales: tuple[MaterialSale, ...] = ()


@dataclass(slots=True, frozen=True)
class CustomerPricing:
    id: str
    customer_id: str
    monthly_price: Optional[Decimal] = None
    per_visit_price: Optional[Decimal] = None


@dataclass(slots=True, frozen=True)
class BranchPricing:
    id: str
    branch_id: str
    monthly_price: Optional[Decimal] = None
    per_visit_price: Optional[Decimal] = None


@dataclass(slots=True, frozen=True)
class MonthlyScheduleRequirement:
    """Required visit count for an operator at a customer or branch within a month."""

    id: str
    visits_required: int
    operator_id: Optional[str] = None
    customer_id: Optional[str] = None
    branch_id: Optional[str] = None
    month: Optional[int] = None
    year: Optional[int] = None
    operator_name: Optional[str] = None
    customer_name: Optional[str] = None
    branch_name: Optional[str] = None


@dataclass(slots=True, frozen=True)
class CustomerRef:
    id: str
    name: str


@dataclass(slots=True, frozen=True)
class BranchRef:
    id: str
    name: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None


@dataclass(slots=True, frozen=True)
class VisitFilters:
    """Optional narrowing applied to the monthly visit query."""

    operator_id: Optional[str] = None
    customer_id: Optional[str] = None
    branch_id: Optional[str] = None
    status: Optional[str] = None
    checked: CheckedState = "all"


@dataclass(slots=True, frozen=True)
class MaterialLine:
    """One consumed product on a visit, flattened from its sale line items."""

    product_name: str
    quantity: Decimal
    unit: Optional[str] = None


ServiceSource = Literal[
    "branch_monthly",
    "customer_monthly",
    "branch_per_visit",
    "customer_per_visit",
    "none",
]


@dataclass(slots=True, frozen=True)
class AugmentedVisit:
    """A visit with the revenue attributed to it for one cohort and pricing snapshot."""

    visit: Visit
    material_sales_revenue: Decimal | float
    service_per_visit_revenue: Decimal | float
    total_visit_revenue: Decimal | float
    service_source: ServiceSource = "none"
    materials: tuple[MaterialLine, ...] = field(default=())
    # Sales that passed validation, with rejected line items removed.
    material_sales: tuple[MaterialSale, ...] = field(default=())

    @property
    def id(self) -> str:
        return self.visit.id

    @property
    def customer_id(self) -> str:
        return self.visit.customer_id

    @property
    def branch_id(self) -> Optional[str]:
        return self.visit.branch_id

    @property
    def operator_id(self) -> Optional[str]:
        return self.visit.operator_id
