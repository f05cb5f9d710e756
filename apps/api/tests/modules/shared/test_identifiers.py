"""
Unit tests for human-readable identifiers.
"""

from unittest.mock import AsyncMock, patch

import pytest

from app.modules.shared.identifiers import (
    IdentifierExhaustedError,
    generate_application_id,
    generate_gmail_address,
    generate_grit_id,
    generate_payment_id,
    generate_quote_id,
    generate_receipt_number,
    generate_unique,
    is_application_id,
)


class TestIdentifierFormats:
    """Tests for the identifier generators."""

    def test_grit_id_is_grit_plus_six_digits(self):
        grit_id = generate_grit_id()
        assert grit_id.startswith("GRIT")
        assert len(grit_id) == 10
        assert grit_id[4:].isdigit()
        assert grit_id[4] != "0"

    def test_application_id_matches_pattern(self):
        for _ in range(20):
            assert is_application_id(generate_application_id())

    def test_quote_payment_and_receipt_prefixes(self):
        quote_id = generate_quote_id()
        payment_id = generate_payment_id()
        receipt_number = generate_receipt_number()

        assert quote_id.startswith("GQ") and len(quote_id) == 14
        assert payment_id.startswith("PAY") and len(payment_id) == 13
        assert receipt_number.startswith("RCP") and len(receipt_number) == 13

    def test_is_application_id_rejects_lowercase_and_wrong_length(self):
        assert not is_application_id("ap36s25d451f2g")
        assert not is_application_id("AP36S25D451F2")
        assert not is_application_id("GQ654236986523")


class TestGenerateUnique:
    """Tests for generate_unique."""

    @pytest.mark.asyncio
    async def test_returns_first_unused_candidate(self):
        candidates = iter(["GRIT100000", "GRIT200000", "GRIT300000"])
        exists = AsyncMock(side_effect=[True, True, False])

        result = await generate_unique(lambda: next(candidates), exists, "GRIT ID")

        assert result == "GRIT300000"
        assert exists.await_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        exists = AsyncMock(return_value=True)

        with patch("app.modules.shared.identifiers.MAX_ATTEMPTS", 3):
            with pytest.raises(IdentifierExhaustedError):
                await generate_unique(lambda: "GRIT100000", exists, "GRIT ID")

        assert exists.await_count == 3


class TestGenerateGmailAddress:
    """Tests for the processing Gmail address."""

    def test_multi_part_last_name_uses_first_part_initial(self):
        assert generate_gmail_address("Joy", "Jeric", "Alburo Cantila") == (
            "jacantilausrn@gmail.com"
        )

    def test_single_last_name_uses_middle_initial(self):
        assert generate_gmail_address("Maria", "Luz", "Santos") == "mlsantosusrn@gmail.com"

    def test_no_middle_name_repeats_last_name_initial(self):
        assert generate_gmail_address("Ana", None, "Reyes") == "arreyesusrn@gmail.com"

    def test_missing_last_name(self):
        assert generate_gmail_address("Joy", None, "") == "jusrn@gmail.com"

    def test_whitespace_and_case_are_normalized(self):
        assert generate_gmail_address("  Paolo", " Ramon ", "DELA CRUZ") == (
            "pdcruzusrn@gmail.com"
        )
