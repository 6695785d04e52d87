"""Per-visit revenue attribution.

Turns a monthly visit cohort and the contract pricing catalog into
``AugmentedVisit`` records carrying material, service and total revenue.

The cohort is also the denominator for monthly fees: a customer's (or
branch's) flat monthly price is split evenly across that owner's visits in
the cohort, so narrowing the cohort with filters changes each share.

Service revenue comes from exactly one source, first match wins:

1. the branch's distributed monthly fee,
2. the customer's distributed monthly fee,
3. the branch's per-visit price,
4. the customer's per-visit price,
5. nothing.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from typing import Iterator, Mapping, Optional, Sequence, Tuple, Union

from ...config import settings
from ...data.errors import InvariantViolation
from ...models.domain import (
    AugmentedVisit,
    BranchPricing,
    CustomerPricing,
    MaterialLine,
    MaterialSale,
    SaleLineItem,
    ServiceSource,
    Visit,
)
from .money import Amount, MoneyArithmetic, get_money

logger = logging.getLogger(__name__)

Pricing = Union[CustomerPricing, BranchPricing]


def _check_sale(sale: MaterialSale) -> None:
    if sale.total_amount is not None and sale.total_amount < 0:
        raise InvariantViolation(sale.id, f"Material sale has negative total {sale.total_amount}")


def _check_line_item(item: SaleLineItem, sale_id: str) -> None:
    if item.quantity < 0:
        product = item.product.name if item.product else "unknown product"
        raise InvariantViolation(sale_id, f"Line item '{product}' has negative quantity {item.quantity}")


def valid_sales(visit: Visit) -> Iterator[MaterialSale]:
    """Yield the visit's sales, leaving out (and logging) those with a negative total."""
    for sale in visit.material_sales:
        try:
            _check_sale(sale)
        except InvariantViolation as exc:
            logger.warning(f"Excluding sale on visit {visit.id}: {exc}")
            continue
        yield sale


def valid_line_items(sale: MaterialSale) -> Iterator[SaleLineItem]:
    for item in sale.items:
        try:
            _check_line_item(item, sale.id)
        except InvariantViolation as exc:
            logger.warning(f"Excluding line item on visit {sale.visit_id}: {exc}")
            continue
        yield item


def product_key(item: SaleLineItem, unknown_product: Optional[str] = None) -> Tuple[str, Optional[str]]:
    """Return the breakdown key and unit for a line item."""
    if item.product is None or not item.product.name:
        return (unknown_product or settings.unknown_product_label, None)
    return (item.product.name, item.product.unit)


def count_visits_by_owner(cohort: Sequence[Visit]) -> Tuple[Counter[str], Counter[str]]:
    """Count cohort visits per customer and per branch."""
    by_customer: Counter[str] = Counter()
    by_branch: Counter[str] = Counter()
    for visit in cohort:
        if visit.customer_id:
            by_customer[visit.customer_id] += 1
        if visit.branch_id:
            by_branch[visit.branch_id] += 1
    return by_customer, by_branch


def distribute_monthly_fees(
    visit_counts: Mapping[str, int],
    pricing: Mapping[str, Pricing],
    money: Optional[MoneyArithmetic] = None,
) -> dict[str, Amount]:
    """Split each positive monthly price across the owner's cohort visits.

    An owner with no visits in the cohort gets a zero share; the fee is not
    charged to anyone else.
    """
    money = money or get_money()
    shares: dict[str, Amount] = {}
    for owner_id, record in pricing.items():
        monthly = money.coerce(record.monthly_price)
        if monthly > 0:
            shares[owner_id] = money.divide(monthly, visit_counts.get(owner_id, 0))
    return shares


def _per_visit_price(record: Optional[Pricing], money: MoneyArithmetic) -> Amount:
    if record is None or record.per_visit_price is None:
        return money.zero()
    price = money.coerce(record.per_visit_price)
    return price if price > 0 else money.zero()


def select_service_revenue(
    visit: Visit,
    branch_shares: Mapping[str, Amount],
    customer_shares: Mapping[str, Amount],
    customer_pricing: Mapping[str, CustomerPricing],
    branch_pricing: Mapping[str, BranchPricing],
    money: Optional[MoneyArithmetic] = None,
) -> Tuple[Amount, ServiceSource]:
    money = money or get_money()

    if visit.branch_id:
        share = branch_shares.get(visit.branch_id)
        if share is not None and share > 0:
            return share, "branch_monthly"

    share = customer_shares.get(visit.customer_id)
    if share is not None and share > 0:
        return share, "customer_monthly"

    if visit.branch_id:
        price = _per_visit_price(branch_pricing.get(visit.branch_id), money)
        if price > 0:
            return price, "branch_per_visit"

    price = _per_visit_price(customer_pricing.get(visit.customer_id), money)
    if price > 0:
        return price, "customer_per_visit"

    logger.debug(f"No pricing applies to visit {visit.id} (customer {visit.customer_id}, branch {visit.branch_id})")
    return money.zero(), "none"


def attribute(
    cohort: Sequence[Visit],
    customer_pricing: Mapping[str, CustomerPricing],
    branch_pricing: Mapping[str, BranchPricing],
    *,
    money: Optional[MoneyArithmetic] = None,
    unknown_product: Optional[str] = None,
) -> list[AugmentedVisit]:
    """Attribute material and service revenue to every visit of the cohort."""
    money = money or get_money()

    customer_counts, branch_counts = count_visits_by_owner(cohort)
    customer_shares = distribute_monthly_fees(customer_counts, customer_pricing, money)
    branch_shares = distribute_monthly_fees(branch_counts, branch_pricing, money)

    augmented: list[AugmentedVisit] = []
    for visit in cohort:
        material_revenue = money.zero()
        materials: list[MaterialLine] = []
        accepted_sales: list[MaterialSale] = []
        for sale in valid_sales(visit):
            material_revenue = money.add(material_revenue, money.coerce(sale.total_amount))
            items = tuple(valid_line_items(sale))
            for item in items:
                name, unit = product_key(item, unknown_product)
                materials.append(MaterialLine(product_name=name, quantity=item.quantity, unit=unit))
            accepted_sales.append(sale if len(items) == len(sale.items) else replace(sale, items=items))

        service_revenue, source = select_service_revenue(
            visit,
            branch_shares,
            customer_shares,
            customer_pricing,
            branch_pricing,
            money,
        )
        augmented.append(
            AugmentedVisit(
                visit=visit,
                material_sales_revenue=material_revenue,
                service_per_visit_revenue=service_revenue,
                total_visit_revenue=money.add(material_revenue, service_revenue),
                service_source=source,
                materials=tuple(materials),
                material_sales=tuple(accepted_sales),
            )
        )
    return augmented
