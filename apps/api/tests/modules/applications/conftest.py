"""
Fixtures for applications tests.
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from app.modules.applications.models import (
    AccountType,
    Application,
    ApplicationPayment,
    ApplicationStatus,
    PaymentStatus,
    PaymentType,
    ProcessingAccount,
    StepStatus,
    TimelineStep,
)
from app.modules.users.models import User

OWNER_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def sample_application():
    """A submitted application owned by the client_user fixture."""
    app = MagicMock(spec=Application)
    app.id = "AP36S25D451F2G"
    app.user_id = OWNER_ID
    app.first_name = "Maria"
    app.middle_name = "Luz"
    app.last_name = "Santos"
    app.email = "maria.santos@example.com"
    app.status = ApplicationStatus.PENDING
    app.picture_path = f"{OWNER_ID}/picture_me_1a2b3c4d.png"
    app.diploma_path = f"{OWNER_ID}/diploma_bsn_1a2b3c4d.pdf"
    app.passport_path = f"{OWNER_ID}/passport_p1_1a2b3c4d.pdf"
    app.created_at = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)
    app.updated_at = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)
    return app


@pytest.fixture
def sample_owner():
    """The applicant's user account."""
    user = MagicMock(spec=User)
    user.id = OWNER_ID
    user.email = "maria.santos@example.com"
    user.grit_id = "GRIT321569"
    user.first_name = "Maria"
    user.last_name = "Santos"
    return user


@pytest.fixture
def sample_payment():
    """A pending step 1 payment."""
    payment = MagicMock(spec=ApplicationPayment)
    payment.id = "PAY1234567890"
    payment.application_id = "AP36S25D451F2G"
    payment.user_id = OWNER_ID
    payment.amount = Decimal("267.99")
    payment.payment_type = PaymentType.STEP1
    payment.status = PaymentStatus.PENDING
    payment.created_at = datetime(2025, 3, 1, 9, 5, tzinfo=UTC)
    return payment


@pytest.fixture
def custom_account():
    """A custom processing account added by the owner."""
    account = MagicMock(spec=ProcessingAccount)
    account.id = "55555555-5555-5555-5555-555555555555"
    account.application_id = "AP36S25D451F2G"
    account.account_type = AccountType.CUSTOM
    account.name = "CGFNS"
    account.email = "maria@cgfns.example"
    account.password = "secret"
    account.created_by = OWNER_ID
    account.created_at = datetime(2025, 3, 2, tzinfo=UTC)
    return account


@pytest.fixture
def gmail_account():
    account = MagicMock(spec=ProcessingAccount)
    account.id = "66666666-6666-6666-6666-666666666666"
    account.application_id = "AP36S25D451F2G"
    account.account_type = AccountType.GMAIL
    account.name = None
    account.email = "mlsantosusrn@gmail.com"
    account.password = "GRIT321569"
    account.created_by = OWNER_ID
    account.created_at = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)
    return account


@pytest.fixture
def pending_step():
    step = MagicMock(spec=TimelineStep)
    step.step_key = "letter_generated"
    step.status = StepStatus.PENDING
    step.data = None
    step.completed_at = None
    return step


@pytest.fixture
def completed_step():
    step = MagicMock(spec=TimelineStep)
    step.step_key = "letter_generated"
    step.status = StepStatus.COMPLETED
    step.data = {"note": "sent"}
    step.completed_at = datetime(2025, 3, 5, tzinfo=UTC)
    return step
