"""Unit tests for input validators."""

from decimal import Decimal

import pytest

from commission_manager.validators import (
    validate_email,
    validate_percentage,
    validate_phone,
    validate_price,
    validate_username,
)


class TestPercentageValidation:
    """Tests for validate_percentage."""

    @pytest.mark.parametrize("value", ["0", "2.5", "100", 5, Decimal("1.25"), 3.5])
    def test_valid_percentages(self, value):
        is_valid, parsed, error = validate_percentage(value)
        assert is_valid
        assert error is None
        assert isinstance(parsed, Decimal)

    def test_comma_decimal_separator(self):
        assert validate_percentage("2,5") == (True, Decimal("2.5"), None)

    @pytest.mark.parametrize("value", ["150", "-0.1", "100.01"])
    def test_out_of_range(self, value):
        is_valid, parsed, error = validate_percentage(value)
        assert not is_valid
        assert parsed is None
        assert "between 0 and 100" in error

    @pytest.mark.parametrize("value", [None, "", "abc", "NaN", "inf", True])
    def test_not_a_number(self, value):
        is_valid, _, _ = validate_percentage(value)
        assert not is_valid

    def test_too_many_decimals(self):
        is_valid, _, error = validate_percentage("2.555")
        assert not is_valid
        assert "decimal places" in error


class TestPriceValidation:
    """Tests for validate_price."""

    def test_zero_price_valid(self):
        assert validate_price("0") == (True, Decimal("0"), None)

    def test_large_price_valid(self):
        is_valid, parsed, _ = validate_price("1000000000.00")
        assert is_valid
        assert parsed == Decimal("1000000000")

    def test_negative_price_invalid(self):
        is_valid, _, error = validate_price("-1")
        assert not is_valid
        assert error == "Price must be >= 0"

    def test_price_above_maximum(self):
        is_valid, _, _ = validate_price("99999999999")
        assert not is_valid

    def test_sub_cent_price_invalid(self):
        is_valid, _, _ = validate_price("10.001")
        assert not is_valid


class TestPersonFieldValidation:
    """Tests for username, email and phone validators."""

    @pytest.mark.parametrize("username", ["alex", "agent_007", "j.doe-2"])
    def test_valid_usernames(self, username):
        assert validate_username(username) == (True, None)

    @pytest.mark.parametrize("username", ["", "ab", "has space", "x" * 51, None])
    def test_invalid_usernames(self, username):
        is_valid, error = validate_username(username)
        assert not is_valid
        assert error

    def test_valid_email(self):
        assert validate_email("agent@example.com") == (True, None)

    @pytest.mark.parametrize("email", ["", "agent", "a@@example.com", "agent@example"])
    def test_invalid_email(self, email):
        is_valid, _ = validate_email(email)
        assert not is_valid

    @pytest.mark.parametrize("phone", [None, "", "+1 (555) 123-4567"])
    def test_valid_phone(self, phone):
        assert validate_phone(phone) == (True, None)

    def test_short_phone(self):
        is_valid, _ = validate_phone("12-34")
        assert not is_valid
