"""
Timeline progress.

Derives the progress summary of an application (current step, next step,
completion percentage, latest update) from its timeline step rows, payments
and processing accounts. Used by the application list and the public
tracking page.

Main steps run in a fixed order. A main step is done when its own row is
completed or when its sub-steps say so; see `is_step_completed`.

The percentage counts 21 items: the 7 main steps plus quick_results (only
their own rows count) and 13 sub-items.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

STEP_ORDER: tuple[tuple[str, str], ...] = (
    ("app_submission", "Application Submission"),
    ("credentialing", "Credentialing"),
    ("bon_application", "BON Application"),
    ("nclex_eligibility", "NCLEX Eligibility"),
    ("pearson_vue", "Pearson VUE Application"),
    ("att", "ATT"),
    ("nclex_exam", "NCLEX Exam"),
)

NEXT_STEP_INSTRUCTIONS: dict[str, str] = {
    "credentialing": "Generate your letter for school",
    "bon_application": "Complete mandatory courses and submit Form 1",
    "nclex_eligibility": "Wait for NCLEX eligibility approval",
    "pearson_vue": "Create Pearson VUE account and request ATT",
    "att": "Wait for ATT to be received",
    "nclex_exam": "Schedule and take your NCLEX exam",
}

QUICK_RESULTS = "quick_results"
APPLICATION_SUBMISSION = "Application Submission"
NOT_STARTED = "Not started"

PASSED_RESULTS = ("pass", "Passed")
FAILED_RESULTS = ("failed", "Failed")
PASSED_MESSAGE = "Congratulations!, You Passed the NCLEX-RN Exam!"
PASSED_NEXT_STEP = 'Wait for 1-2 weeks for your license to reflect in "Nursys"'
FAILED_MESSAGE = "You have failed the exam, Don't worry, you can take it again anytime."
FAILED_NEXT_STEP = "Retake again!"

COMPLETED = "completed"
PAID = "paid"


def _value(member) -> str:
    return getattr(member, "value", member)


@dataclass
class ProgressSummary:
    current_progress: str
    next_step: str | None
    latest_update: datetime | None
    progress_percentage: int
    completed_steps: int
    total_steps: int
    paid_amount: Decimal | None
    is_timeline_completed: bool


class _Timeline:
    """Lookup helpers over one application's rows."""

    def __init__(self, application, steps, payments, accounts):
        self.application = application
        self.steps = {step.step_key: step for step in steps}
        self.payments = list(payments)
        self.account_types = {_value(account.account_type) for account in accounts}

    def done(self, key: str) -> bool:
        step = self.steps.get(key)
        return step is not None and step.status == COMPLETED

    def data(self, key: str) -> dict:
        step = self.steps.get(key)
        if step is None or not isinstance(step.data, dict):
            return {}
        return step.data

    def paid(self, *payment_types: str) -> bool:
        return any(
            p.status == PAID and (not payment_types or p.payment_type in payment_types)
            for p in self.payments
        )

    def has_account(self, account_type: str) -> bool:
        return account_type in self.account_types

    def documents_complete(self) -> bool:
        app = self.application
        return bool(app.picture_path and app.diploma_path and app.passport_path)


def _sub_steps_done(t: _Timeline, key: str) -> bool:
    if key == "app_submission":
        created = t.done("app_created") or t.application.created_at is not None
        documents = t.done("documents_submitted") or t.documents_complete()
        paid = t.done("app_paid") or t.paid("step1", "full")
        return created and documents and paid

    if key == "credentialing":
        return all(
            t.done(k) for k in ("letter_generated", "letter_submitted", "official_docs_submitted")
        )

    if key == "bon_application":
        paid = t.done("app_step2_paid") or t.paid("step2")
        return t.done("mandatory_courses") and t.done("form1_submitted") and paid

    if key == "nclex_eligibility":
        return t.done("nclex_eligibility_approved")

    if key == "pearson_vue":
        account = t.done("pearson_account_created") or t.has_account("pearson_vue")
        return account and t.done("att_requested")

    if key == "att":
        data = t.data("att_received")
        return bool(data.get("code") or data.get("att_code")) and bool(
            data.get("expiry_date") or data.get("att_expiry_date")
        )

    if key == "nclex_exam":
        data = t.data("exam_date_booked")
        return (
            bool(data.get("date") or data.get("exam_date"))
            and bool(data.get("time") or data.get("exam_time"))
            and bool(data.get("location") or data.get("exam_location"))
        )

    if key == QUICK_RESULTS:
        return bool(t.data(QUICK_RESULTS).get("result"))

    return False


def is_step_completed(t: _Timeline, key: str) -> bool:
    return t.done(key) or _sub_steps_done(t, key)


def _percentage_items(t: _Timeline) -> list[bool]:
    main_keys = [key for key, _ in STEP_ORDER] + [QUICK_RESULTS]
    items = [t.done(key) for key in main_keys]

    items += [
        # app_submission
        t.application.created_at is not None,
        True,  # documents are required to create an application
        t.paid(),
        # credentialing
        t.done("letter_generated"),
        t.done("letter_submitted"),
        t.done("official_docs_submitted"),
        # bon_application
        t.done("mandatory_courses"),
        t.done("form1_submitted"),
        # nclex_eligibility
        t.done("nclex_eligibility_approved"),
        # pearson_vue
        t.has_account("pearson_vue"),
        t.done("att_requested"),
        # att
        t.done("att_received"),
        # nclex_exam
        t.done("exam_date_booked"),
    ]
    return items


def _latest_update(t: _Timeline) -> datetime | None:
    timestamps = [
        value
        for step in t.steps.values()
        for value in (step.updated_at, step.completed_at, step.created_at)
        if value is not None
    ]
    if timestamps:
        return max(timestamps)
    return t.application.updated_at or t.application.created_at


def _latest_paid_amount(payments: Iterable) -> Decimal | None:
    paid = [p for p in payments if p.status == PAID]
    if not paid:
        return None
    newest = max(paid, key=lambda p: (p.created_at is not None, p.created_at or 0))
    return newest.amount


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_progress(application, steps, payments, accounts) -> ProgressSummary:
    """
    Compute the progress summary of one application.

    Args:
        application: Object with created_at, updated_at, status and the
            picture/diploma/passport paths
        steps: The application's timeline step rows
        payments: The application's payments
        accounts: The application's processing accounts

    Returns:
        ProgressSummary
    """
    t = _Timeline(application, steps, payments, accounts)
    completed = {key: is_step_completed(t, key) for key, _ in STEP_ORDER}

    # Current step: last completed in order
    current_index = -1
    for index in range(len(STEP_ORDER) - 1, -1, -1):
        if completed[STEP_ORDER[index][0]]:
            current_index = index
            break

    current_name = STEP_ORDER[current_index][1] if current_index >= 0 else None
    if current_name is None and application.created_at is not None:
        current_index = 0
        current_name = APPLICATION_SUBMISSION

    # Next step: first incomplete step after the current one
    next_key = None
    if current_index == -1:
        if not completed[STEP_ORDER[0][0]]:
            next_key = STEP_ORDER[0][0]
    else:
        for key, _ in STEP_ORDER[current_index + 1 :]:
            if not completed[key]:
                next_key = key
                break

    is_timeline_completed = all(completed.values())
    paid_amount = _latest_paid_amount(t.payments)

    current_progress = current_name or NOT_STARTED
    next_step = None

    if is_timeline_completed or application.status == COMPLETED:
        result = t.data(QUICK_RESULTS).get("result")
        if result in PASSED_RESULTS:
            current_progress = PASSED_MESSAGE
            next_step = PASSED_NEXT_STEP
        elif result in FAILED_RESULTS:
            current_progress = FAILED_MESSAGE
            next_step = FAILED_NEXT_STEP
        elif result:
            current_progress = f"Exam Result: {result}"
    else:
        if paid_amount and current_name in (APPLICATION_SUBMISSION, None):
            current_progress += f", Application paidAmount: ${float(paid_amount):.2f}"

        if next_key is not None:
            next_step = dict(STEP_ORDER)[next_key]
            instruction = NEXT_STEP_INSTRUCTIONS.get(next_key)
            if instruction:
                next_step = f"{next_step}, {instruction}"

    items = _percentage_items(t)
    done = sum(1 for item in items if item)

    return ProgressSummary(
        current_progress=current_progress,
        next_step=next_step,
        latest_update=_latest_update(t),
        progress_percentage=_round_half_up(done / len(items) * 100),
        completed_steps=done,
        total_steps=len(items),
        paid_amount=paid_amount,
        is_timeline_completed=is_timeline_completed,
    )
