from decimal import Decimal

import pytest

from order_desk.application.validators import (
    MAX_AMOUNT,
    MAX_QUANTITY,
    normalize_selections,
    parse_amount,
    validate_submission,
)
from order_desk.domain.entities import CustomerDetails
from order_desk.domain.errors import ValidationError
from conftest import make_selection

VALID_CUSTOMER = CustomerDetails(name="Asha", phone="9000000000", village="Cherupally")


class TestParseAmount:

    @pytest.mark.parametrize("raw, expected", [
        (2, Decimal("2")),
        (0.5, Decimal("0.5")),
        ("150.25", Decimal("150.25")),
        (" 3 ", Decimal("3")),
    ])
    def test_valid_amounts(self, raw, expected):
        assert parse_amount(raw, "quantity") == expected

    @pytest.mark.parametrize("raw", [None, True, "abc", "", "NaN", "Infinity", [1]])
    def test_invalid_amounts(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            parse_amount(raw, "quantity")
        assert exc_info.value.field == "quantity"

    @pytest.mark.parametrize("raw", ["1e30", 1e30, "-10000000000"])
    def test_amounts_above_column_limit(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            parse_amount(raw, "total_bill")
        assert exc_info.value.field == "total_bill"

    def test_quantity_limit(self):
        assert parse_amount("99999999.99", "quantity", MAX_QUANTITY) == MAX_QUANTITY
        assert parse_amount("9999999999.99", "price") == MAX_AMOUNT
        with pytest.raises(ValidationError):
            parse_amount("100000000", "quantity", MAX_QUANTITY)


class TestNormalizeSelections:

    def test_zero_quantity_is_dropped(self):
        result = normalize_selections([make_selection("rice", quantity="0"), make_selection("oil", quantity="1")])
        assert [s.product_id for s in result] == ["oil"]

    def test_negative_quantity_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_selections([make_selection("rice", quantity="-1")])
        assert exc_info.value.field == "products"

    def test_negative_price_is_rejected(self):
        with pytest.raises(ValidationError):
            normalize_selections([make_selection("rice", price="-5")])

    def test_received_above_ordered_is_rejected(self):
        with pytest.raises(ValidationError):
            normalize_selections([make_selection("rice", quantity="2", received="3")])

    def test_received_within_range_is_kept(self):
        result = normalize_selections([make_selection("rice", quantity="2", received="1.5")])
        assert result[0].received_quantity == Decimal("1.5")

    def test_missing_product_id_is_rejected(self):
        selection = make_selection("rice")
        selection.product_id = ""
        with pytest.raises(ValidationError):
            normalize_selections([selection])


class TestValidateSubmission:

    def test_valid_submission(self):
        validate_submission(VALID_CUSTOMER, [make_selection()], Decimal("100"))

    @pytest.mark.parametrize("field", ["name", "phone", "village"])
    def test_missing_customer_field(self, field):
        values = {"name": "Asha", "phone": "9000000000", "village": "Cherupally", field: ""}
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(CustomerDetails(**values), [make_selection()], Decimal("100"))
        assert exc_info.value.field == field

    def test_empty_products(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(VALID_CUSTOMER, [], Decimal("100"))
        assert exc_info.value.field == "products"

    @pytest.mark.parametrize("total", [None, Decimal("0"), Decimal("-10")])
    def test_non_positive_total(self, total):
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(VALID_CUSTOMER, [make_selection()], total)
        assert exc_info.value.field == "total_bill"
