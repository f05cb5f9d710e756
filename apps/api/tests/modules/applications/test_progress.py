"""
Unit tests for the timeline progress computation.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.modules.applications.progress import (
    FAILED_MESSAGE,
    FAILED_NEXT_STEP,
    PASSED_MESSAGE,
    PASSED_NEXT_STEP,
    STEP_ORDER,
    _round_half_up,
    _Timeline,
    compute_progress,
    is_step_completed,
)

CREATED_AT = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)

ALL_SUB_STEP_ROWS = (
    "letter_generated",
    "letter_submitted",
    "official_docs_submitted",
    "mandatory_courses",
    "form1_submitted",
    "nclex_eligibility_approved",
    "att_requested",
    "att_received",
    "exam_date_booked",
)


def make_application(status="pending", created_at=CREATED_AT, documents=True):
    application = MagicMock()
    application.status = status
    application.created_at = created_at
    application.updated_at = created_at
    application.picture_path = "u1/picture_a.png" if documents else None
    application.diploma_path = "u1/diploma_a.pdf" if documents else None
    application.passport_path = "u1/passport_a.pdf" if documents else None
    return application


def make_step(step_key, status="completed", data=None, at=CREATED_AT):
    step = MagicMock()
    step.step_key = step_key
    step.status = status
    step.data = data
    step.created_at = at
    step.updated_at = at
    step.completed_at = at if status == "completed" else None
    return step


def make_payment(payment_type="step1", status="paid", amount="267.99", created_at=CREATED_AT):
    payment = MagicMock()
    payment.payment_type = payment_type
    payment.status = status
    payment.amount = Decimal(amount)
    payment.created_at = created_at
    return payment


def make_account(account_type):
    account = MagicMock()
    account.account_type = account_type
    return account


class TestNewApplication:
    """Progress of a freshly submitted application."""

    def test_unpaid_application_is_at_submission(self):
        result = compute_progress(make_application(), [], [], [])

        assert result.current_progress == "Application Submission"
        assert result.next_step == "Credentialing, Generate your letter for school"
        assert result.paid_amount is None
        assert result.is_timeline_completed is False

    def test_percentage_counts_created_and_documents(self):
        result = compute_progress(make_application(), [], [], [])

        assert result.total_steps == 21
        assert result.completed_steps == 2
        assert result.progress_percentage == 10

    def test_submission_needs_documents_or_their_row(self):
        payments = [make_payment()]

        missing = _Timeline(make_application(documents=False), [], payments, [])
        stored = _Timeline(make_application(), [], payments, [])
        recorded = _Timeline(
            make_application(documents=False), [make_step("documents_submitted")], payments, []
        )

        assert is_step_completed(missing, "app_submission") is False
        assert is_step_completed(stored, "app_submission") is True
        assert is_step_completed(recorded, "app_submission") is True

    def test_paid_step1_shows_paid_amount(self):
        result = compute_progress(make_application(), [], [make_payment()], [])

        assert result.current_progress == (
            "Application Submission, Application paidAmount: $267.99"
        )
        assert result.next_step == "Credentialing, Generate your letter for school"
        assert result.paid_amount == Decimal("267.99")
        assert result.completed_steps == 3
        assert result.progress_percentage == 14

    def test_pending_payment_is_not_counted(self):
        result = compute_progress(
            make_application(), [], [make_payment(status="pending")], []
        )

        assert result.paid_amount is None
        assert result.completed_steps == 2

    def test_not_started_without_creation_time(self):
        result = compute_progress(make_application(created_at=None), [], [], [])

        assert result.current_progress == "Not started"
        assert result.next_step == "Application Submission"


class TestMainStepCompletion:
    """Main steps complete through their own row or their sub-steps."""

    def test_credentialing_completes_through_sub_steps(self):
        steps = [
            make_step("letter_generated"),
            make_step("letter_submitted"),
            make_step("official_docs_submitted"),
        ]

        result = compute_progress(make_application(), steps, [make_payment()], [])

        assert result.current_progress == "Credentialing"
        assert result.next_step == (
            "BON Application, Complete mandatory courses and submit Form 1"
        )

    def test_partial_sub_steps_do_not_complete_step(self):
        steps = [make_step("letter_generated"), make_step("letter_submitted")]

        result = compute_progress(make_application(), steps, [make_payment()], [])

        assert result.current_progress.startswith("Application Submission")

    def test_pending_row_does_not_count(self):
        steps = [make_step("credentialing", status="pending")]

        result = compute_progress(make_application(), steps, [], [])

        assert result.current_progress == "Application Submission"

    def test_current_step_is_last_completed_in_order(self):
        steps = [make_step("nclex_eligibility")]

        result = compute_progress(make_application(), steps, [], [])

        assert result.current_progress == "NCLEX Eligibility"
        assert result.next_step == (
            "Pearson VUE Application, Create Pearson VUE account and request ATT"
        )

    def test_pearson_vue_account_counts_as_account_created(self):
        steps = [make_step("nclex_eligibility"), make_step("att_requested")]

        result = compute_progress(
            make_application(), steps, [], [make_account("pearson_vue")]
        )

        assert result.current_progress == "Pearson VUE Application"
        assert result.next_step == "ATT, Wait for ATT to be received"

    def test_att_completes_from_code_and_expiry(self):
        steps = [
            make_step(
                "att_received",
                data={"att_code": "ATT-5521", "att_expiry_date": "2025-09-30"},
            )
        ]

        result = compute_progress(make_application(), steps, [], [])

        assert result.current_progress == "ATT"
        assert result.next_step == "NCLEX Exam, Schedule and take your NCLEX exam"

    def test_att_without_expiry_is_not_complete(self):
        steps = [make_step("att_received", status="pending", data={"code": "ATT-5521"})]

        result = compute_progress(make_application(), steps, [], [])

        assert result.current_progress == "Application Submission"

    def test_exam_booking_needs_date_time_and_location(self):
        booked = make_step(
            "exam_date_booked",
            data={"date": "2025-10-02", "time": "08:00", "location": "Manila"},
        )
        incomplete = make_step("exam_date_booked", data={"date": "2025-10-02"})

        assert compute_progress(make_application(), [booked], [], []).current_progress == (
            "NCLEX Exam"
        )
        assert compute_progress(
            make_application(), [incomplete], [], []
        ).current_progress == "Application Submission"


class TestExamResults:
    """Completed timelines report the quick result."""

    @pytest.fixture
    def finished_steps(self):
        return [make_step(key) for key, _ in STEP_ORDER]

    def test_passed_result(self, finished_steps):
        steps = finished_steps + [make_step("quick_results", data={"result": "pass"})]

        result = compute_progress(make_application(), steps, [], [])

        assert result.is_timeline_completed is True
        assert result.current_progress == PASSED_MESSAGE
        assert result.next_step == PASSED_NEXT_STEP

    def test_failed_result_on_completed_status(self):
        steps = [make_step("quick_results", data={"result": "Failed"})]

        result = compute_progress(make_application(status="completed"), steps, [], [])

        assert result.current_progress == FAILED_MESSAGE
        assert result.next_step == FAILED_NEXT_STEP

    def test_other_result_is_shown_as_is(self, finished_steps):
        steps = finished_steps + [make_step("quick_results", data={"result": "Pending review"})]

        result = compute_progress(make_application(), steps, [], [])

        assert result.current_progress == "Exam Result: Pending review"
        assert result.next_step is None

    def test_completed_without_result_keeps_step_name(self, finished_steps):
        result = compute_progress(make_application(), finished_steps, [], [])

        assert result.current_progress == "NCLEX Exam"
        assert result.next_step is None


class TestPercentage:
    """The 21-item completion percentage."""

    def test_everything_done_is_100(self):
        steps = [make_step(key) for key, _ in STEP_ORDER]
        steps += [make_step("quick_results", data={"result": "pass"})]
        steps += [make_step(key) for key in ALL_SUB_STEP_ROWS]

        result = compute_progress(
            make_application(), steps, [make_payment()], [make_account("pearson_vue")]
        )

        assert result.completed_steps == 21
        assert result.progress_percentage == 100

    def test_duplicate_rows_count_once(self):
        steps = [make_step("letter_generated"), make_step("letter_generated")]

        result = compute_progress(make_application(), steps, [], [])

        assert result.completed_steps == 3

    def test_round_half_up(self):
        assert _round_half_up(12.5) == 13
        assert _round_half_up(12.49) == 12
        assert _round_half_up(0) == 0


class TestLatestUpdateAndPaidAmount:
    """latest_update and paid_amount selection."""

    def test_latest_update_is_newest_step_timestamp(self):
        later = CREATED_AT + timedelta(days=3)
        steps = [make_step("letter_generated"), make_step("letter_submitted", at=later)]

        result = compute_progress(make_application(), steps, [], [])

        assert result.latest_update == later

    def test_latest_update_falls_back_to_application(self):
        result = compute_progress(make_application(), [], [], [])

        assert result.latest_update == CREATED_AT

    def test_paid_amount_is_newest_paid_payment(self):
        payments = [
            make_payment("step1", amount="267.99", created_at=CREATED_AT),
            make_payment("step2", amount="508.00", created_at=CREATED_AT + timedelta(days=10)),
        ]

        result = compute_progress(make_application(), [], payments, [])

        assert result.paid_amount == Decimal("508.00")
