"""Receipt line items per payment type."""

from app.modules.applications.models import PaymentType

STEP1_ITEMS = [
    {"name": "NCLEX NY BON Application Fee", "amount": 143},
    {"name": "NCLEX NY Mandatory Courses", "amount": 54.99},
    {"name": "NCLEX NY Bond Fee", "amount": 70},
]

STEP2_ITEMS = [
    {"name": "NCLEX PV Application Fee", "amount": 200},
    {"name": "NCLEX PV NCSBN Exam Fee", "amount": 150},
    {"name": "NCLEX GritSync Service Fee", "amount": 150},
    {"name": "NCLEX NY Quick Results", "amount": 8},
]

FULL_ITEMS = [
    {"name": "NCLEX PV Application Fee", "amount": 200},
    {"name": "NCLEX PV NCSBN Exam Fee", "amount": 150},
    {"name": "NCLEX GritSync Service Fee", "amount": 100},
    {"name": "NCLEX NY Quick Results", "amount": 8},
]

_ITEMS_BY_TYPE = {
    PaymentType.STEP1: STEP1_ITEMS,
    PaymentType.STEP2: STEP2_ITEMS,
    PaymentType.FULL: FULL_ITEMS,
}

PAYMENT_TYPE_LABELS = {
    PaymentType.STEP1: "Step 1",
    PaymentType.STEP2: "Step 2",
    PaymentType.FULL: "Full Payment",
}

INTENT_DESCRIPTION_LABELS = {
    PaymentType.STEP1: "Step 1",
    PaymentType.STEP2: "Step 2",
    PaymentType.FULL: "Full",
}


def receipt_items(payment_type: PaymentType) -> list[dict]:
    """Fresh copy of the line items for a payment type."""
    return [dict(item) for item in _ITEMS_BY_TYPE.get(payment_type, [])]
