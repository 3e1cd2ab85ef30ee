"""Unit tests for payment input validators (pure functions)."""

from decimal import Decimal

import pytest

from chatsphere.application.payment.validators import (
    to_minor_units,
    validate_amount,
    validate_currency,
    validate_recipient,
)
from chatsphere.domain.errors import InvalidInput


class TestValidateAmount:
    @pytest.mark.parametrize("value", [500, 500.0, Decimal("0.01"), 1.5])
    def test_positive_numbers_accepted(self, value) -> None:
        assert validate_amount(value) == Decimal(str(value))

    @pytest.mark.parametrize("value", [0, -5, -0.01])
    def test_non_positive_rejected(self, value) -> None:
        with pytest.raises(InvalidInput, match="greater than zero"):
            validate_amount(value)

    @pytest.mark.parametrize("value", ["500", None, True, [500], {"amount": 5}])
    def test_non_numbers_rejected(self, value) -> None:
        with pytest.raises(InvalidInput, match="must be a number"):
            validate_amount(value)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_rejected(self, value) -> None:
        with pytest.raises(InvalidInput):
            validate_amount(value)


class TestToMinorUnits:
    def test_whole_amount(self) -> None:
        assert to_minor_units(Decimal("500")) == 50000

    def test_fractional_amount_rounds_half_up(self) -> None:
        assert to_minor_units(Decimal("10.005")) == 1001

    def test_below_one_minor_unit_rejected(self) -> None:
        with pytest.raises(InvalidInput, match="smallest currency unit"):
            to_minor_units(Decimal("0.001"))


class TestValidateCurrency:
    def test_normalizes_case(self) -> None:
        assert validate_currency(" inr ") == "INR"

    def test_unsupported_currency(self) -> None:
        with pytest.raises(InvalidInput, match="Unsupported currency"):
            validate_currency("USD")

    def test_missing_currency(self) -> None:
        with pytest.raises(InvalidInput):
            validate_currency("")


class TestValidateRecipient:
    def test_strips_fields(self) -> None:
        assert validate_recipient("  Bob ", " bob@upi ") == ("Bob", "bob@upi")

    @pytest.mark.parametrize(
        "name, handle", [("", "bob@upi"), ("Bob", "   "), (None, "bob@upi"), ("Bob", None)]
    )
    def test_blank_fields_rejected(self, name, handle) -> None:
        with pytest.raises(InvalidInput, match="Recipient"):
            validate_recipient(name, handle)
