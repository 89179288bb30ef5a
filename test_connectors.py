"""
Connector Payload Tests

Covers mapping of orders-system and ledger-system payloads onto the
canonical models, including both field-name conventions.
"""

from datetime import date
from decimal import Decimal

import pytest

from connectors.ledger_system import (
    LedgerMatchError,
    RawLedgerInvoice,
    RawLedgerLookup,
    parse_ledger_lookup,
)
from connectors.orders_system import (
    RawCustomer,
    RawOrder,
    parse_customers_response,
    parse_orders_response,
)


class TestOrdersSystem:
    """GetOrder / GetCustomer payloads."""

    def test_pascal_case_order(self):
        order = RawOrder.model_validate({
            "OrderID": "1001",
            "Username": "john.doe",
            "Email": "john@example.com",
            "OrderStatus": "Dispatched",
            "GrandTotal": "1500.00",
            "DatePlaced": "2024-01-05 09:30:00",
            "DatePaymentDue": "2024-02-04",
            "OrderPayment": [{"Amount": "500"}, {"Amount": "300.00"}],
            "Unexpected": "ignored",
        }).to_order_record()

        assert order.order_id == "1001"
        assert order.username == "john.doe"
        assert order.grand_total == Decimal("1500.00")
        assert order.date_payment_due == date(2024, 2, 4)
        assert [p.amount for p in order.payments] == [Decimal("500"), Decimal("300.00")]

    def test_camel_case_order(self):
        order = RawOrder.model_validate({
            "id": 42,
            "grandTotal": 99.5,
            "datePlaced": "2024-03-01",
            "payments": [{"amount": 10}],
        }).to_order_record()

        assert order.order_id == "42"
        assert order.grand_total == Decimal("99.5")
        assert order.payments[0].amount == Decimal("10")

    def test_missing_fields_stay_none(self):
        order = RawOrder.model_validate({"OrderID": "  "}).to_order_record()

        assert order.order_id is None
        assert order.grand_total is None
        assert order.payments == []

    def test_malformed_values_become_none(self):
        order = RawOrder.model_validate({
            "OrderID": "7",
            "GrandTotal": "not money",
            "DatePaymentDue": "someday",
        }).to_order_record()

        assert order.grand_total is None
        assert order.date_payment_due is None

    def test_parse_orders_response(self):
        orders = parse_orders_response({"Order": [{"OrderID": "1"}, {"OrderID": "2"}]})
        assert [o.order_id for o in orders] == ["1", "2"]

    def test_parse_orders_response_single_record(self):
        orders = parse_orders_response({"Order": {"OrderID": "1"}})
        assert [o.order_id for o in orders] == ["1"]

    def test_parse_orders_response_bare_list_and_empty(self):
        assert len(parse_orders_response([{"id": "1"}])) == 1
        assert parse_orders_response(None) == []
        assert parse_orders_response({}) == []

    def test_customer(self):
        customer = RawCustomer.model_validate({
            "Username": "jane",
            "EmailAddress": "jane@example.com",
            "AccountBalance": "1,250.00",
            "BillingAddress": {
                "BillFirstName": "Jane",
                "BillLastName": "Doe",
                "BillCompany": "Acme",
            },
        }).to_customer_record()

        assert customer.email == "jane@example.com"
        assert customer.account_balance == Decimal("1250.00")
        assert customer.billing_address.company == "Acme"

    def test_parse_customers_response(self):
        customers = parse_customers_response({
            "Customer": [{"Username": "a"}, {"username": "b", "billingAddress": {"firstName": "B"}}]
        })

        assert [c.username for c in customers] == ["a", "b"]
        assert customers[0].billing_address is None
        assert customers[1].billing_address.first_name == "B"

    def test_single_payment_object(self):
        orders = parse_orders_response([
            {"OrderID": "1", "GrandTotal": "10", "OrderPayment": {"Amount": "5"}}
        ])

        assert [p.amount for p in orders[0].payments] == [Decimal("5")]

    def test_numeric_text_fields(self):
        orders = parse_orders_response([
            {"OrderID": 7, "GrandTotal": "10", "Username": 12345, "Email": 9, "OrderStatus": 2}
        ])

        assert orders[0].order_id == "7"
        assert orders[0].username == "12345"
        assert orders[0].email == "9"
        assert orders[0].order_status == "2"

    @pytest.mark.parametrize("bad", [
        {"OrderPayment": "garbage"},
        {"OrderPayment": ["garbage"]},
        {"Username": {"first": "x"}},
    ])
    def test_malformed_record_keeps_only_its_id(self, bad):
        orders = parse_orders_response([
            {"OrderID": "1", "GrandTotal": "10", **bad},
            {"OrderID": "2", "GrandTotal": "20"},
        ])

        assert [o.order_id for o in orders] == ["1", "2"]
        assert orders[0].grand_total is None
        assert orders[0].payments == []
        assert orders[1].grand_total == Decimal("20")

    def test_malformed_non_object_record(self):
        orders = parse_orders_response({"Order": ["not an order"]})
        assert orders[0].order_id is None

    def test_malformed_customer_skipped(self):
        customers = parse_customers_response([
            {"Username": "a", "BillingAddress": "nowhere"},
            {"Username": 42, "BillingAddress": {"BillFirstName": 7}},
        ])

        assert [c.username for c in customers] == ["42"]
        assert customers[0].billing_address.first_name == "7"


class TestLedgerSystem:
    """Ledger invoice lookups."""

    def test_invoice_field_conventions(self):
        camel = RawLedgerInvoice.model_validate(
            {"total": "10", "amountPaid": "4", "amountDue": "6", "invoiceNumber": "INV-1"}
        ).to_ledger_invoice()
        pascal = RawLedgerInvoice.model_validate(
            {"Total": "10", "AmountPaid": "4", "AmountDue": "6", "InvoiceNumber": "INV-1"}
        ).to_ledger_invoice()

        assert camel == pascal
        assert camel.amount_due == Decimal("6")

    def test_unreported_fields_stay_none(self):
        invoice = RawLedgerInvoice.model_validate({"amountDue": "500"}).to_ledger_invoice()
        assert invoice.total is None
        assert invoice.amount_paid is None

    def test_not_found(self):
        assert parse_ledger_lookup({"foundCount": 0, "invoices": []}) is None
        assert parse_ledger_lookup(None) is None

    def test_found_count_zero_wins(self):
        lookup = RawLedgerLookup.model_validate({"foundCount": 0, "invoices": [{"total": "1"}]})
        assert lookup.to_ledger_invoice() is None

    def test_single_invoice(self):
        invoice = parse_ledger_lookup({"foundCount": 1, "invoices": [{"total": "1500"}]})
        assert invoice.total == Decimal("1500")

    def test_several_matched_by_reference(self):
        payload = {
            "foundCount": 2,
            "invoices": [
                {"reference": "1000", "total": "10"},
                {"reference": "1001", "total": "20"},
            ],
        }
        assert parse_ledger_lookup(payload, reference="1001").total == Decimal("20")

    def test_several_matched_by_invoice_number(self):
        payload = {
            "invoices": [
                {"invoiceNumber": "A-1", "total": "10"},
                {"invoiceNumber": "A-2", "total": "20"},
            ],
        }
        assert parse_ledger_lookup(payload, reference="A-1").total == Decimal("10")

    def test_several_without_match_raises(self):
        payload = {"foundCount": 2, "invoices": [{"reference": "x"}, {"reference": "y"}]}

        with pytest.raises(LedgerMatchError) as exc_info:
            parse_ledger_lookup(payload, reference="z")

        assert exc_info.value.found_count == 2
        assert exc_info.value.reference == "z"
