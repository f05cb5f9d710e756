"""
Service pricing.

Line items are dicts with `description`, `amount`, an optional `step`
(1 or 2, missing means step 1) and an optional `taxable` flag. Taxable
items add 12% tax to their step's total.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

TAX_RATE = Decimal("0.12")
CENT = Decimal("0.01")

DEFAULT_SERVICE_NAME = "NCLEX Processing"
DEFAULT_STATE = "New York"
STAGGERED_SERVICE_ID = "svc_nclex_ny_staggered"
FULL_SERVICE_ID = "svc_nclex_ny_full"

PAYMENT_TYPE_STAGGERED = "staggered"
PAYMENT_TYPE_FULL = "full"

_DEFAULT_ITEMS = (
    ("NCLEX NY BON Application Fee", 143, 1),
    ("NCLEX NY Mandatory Courses", 54.99, 1),
    ("NCLEX NY Bond Fee", 70, 1),
    ("NCLEX PV Application Fee", 200, 2),
    ("NCLEX PV NCSBN Exam Fee", 150, 2),
    ("NCLEX GritSync Service Fee", 150, 2),
    ("NCLEX NY Quick Results", 8, 2),
)

STAGGERED_LINE_ITEMS = [
    {"description": description, "amount": amount, "step": step}
    for description, amount, step in _DEFAULT_ITEMS
]
FULL_LINE_ITEMS = [
    {"description": description, "amount": amount} for description, amount, _ in _DEFAULT_ITEMS
]


@dataclass(frozen=True)
class ServiceTotals:
    step1: Decimal
    step2: Decimal
    full: Decimal


def _amount(item: dict) -> Decimal:
    return Decimal(str(item.get("amount") or 0))


def _step_total(items: list[dict]) -> Decimal:
    subtotal = sum((_amount(item) for item in items), Decimal("0"))
    tax = sum((_amount(item) * TAX_RATE for item in items if item.get("taxable")), Decimal("0"))
    return (subtotal + tax).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_service_totals(line_items: list[dict]) -> ServiceTotals:
    """
    >>> compute_service_totals(STAGGERED_LINE_ITEMS)
    ServiceTotals(step1=Decimal('267.99'), step2=Decimal('508.00'), full=Decimal('775.99'))
    """
    step1_items = [item for item in line_items if not item.get("step") or item.get("step") == 1]
    step2_items = [item for item in line_items if item.get("step") == 2]

    step1 = _step_total(step1_items)
    step2 = _step_total(step2_items)
    return ServiceTotals(step1=step1, step2=step2, full=step1 + step2)


def default_services() -> list[dict]:
    """The two NCLEX New York services every catalogue starts with."""
    staggered = compute_service_totals(STAGGERED_LINE_ITEMS)
    full = compute_service_totals(FULL_LINE_ITEMS)
    return [
        {
            "id": STAGGERED_SERVICE_ID,
            "service_name": DEFAULT_SERVICE_NAME,
            "state": DEFAULT_STATE,
            "payment_type": PAYMENT_TYPE_STAGGERED,
            "line_items": STAGGERED_LINE_ITEMS,
            "total_full": staggered.full,
            "total_step1": staggered.step1,
            "total_step2": staggered.step2,
        },
        {
            "id": FULL_SERVICE_ID,
            "service_name": DEFAULT_SERVICE_NAME,
            "state": DEFAULT_STATE,
            "payment_type": PAYMENT_TYPE_FULL,
            "line_items": FULL_LINE_ITEMS,
            "total_full": full.full,
            "total_step1": None,
            "total_step2": None,
        },
    ]
