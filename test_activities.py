"""
Statement Activity Tests

Runs generate_customer_statement in Temporal's ActivityEnvironment with
raw orders-system and ledger-system payloads.
"""

import asyncio
import json

import pytest
from temporalio.testing import ActivityEnvironment

from activities.statement import GenerateStatementInput, generate_customer_statement
from connectors.ledger_system import LedgerMatchError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in [
        "STATEMENT_MISMATCH_TOLERANCE",
        "STATEMENT_DATE_LOCALE",
        "STATEMENT_INCLUDE_CURRENCY_SYMBOL",
        "STATEMENT_CURRENCY_SYMBOL",
    ]:
        monkeypatch.delenv(name, raising=False)


def run_activity(input: GenerateStatementInput):
    env = ActivityEnvironment()
    return asyncio.run(env.run(generate_customer_statement, input))


ORDERS = [
    {
        "OrderID": "1002",
        "GrandTotal": "1000.00",
        "DatePlaced": "2024-02-01",
        "DatePaymentDue": "2024-03-01",
        "OrderPayment": [{"Amount": "400.00"}],
    },
    {
        "OrderID": "1001",
        "GrandTotal": "1500.00",
        "DatePlaced": "2024-01-05",
        "DatePaymentDue": "2024-07-01",
        "OrderPayment": [{"Amount": "500.00"}, {"Amount": "300.00"}],
    },
]


class TestGenerateCustomerStatement:
    """Activity end to end."""

    def test_builds_statement(self):
        output = run_activity(GenerateStatementInput(
            customer_username="john.doe",
            orders=ORDERS,
            ledger_lookups=[
                {"foundCount": 1, "invoices": [{"amountDue": "500.00"}]},
                {"foundCount": 0, "invoices": []},
            ],
            now="2024-06-15T12:00:00Z",
        ))

        assert output.success
        assert output.customer_username == "john.doe"
        assert [r["order_id"] for r in output.statement["rows"]] == ["1001", "1002"]
        assert output.statement["rows"][0]["date_placed"] == "Jan 5, 2024"
        assert output.statement["grand_total_display"] == "1,300.00"
        assert output.statement["past_due_total_display"] == "600.00"
        assert output.mismatch_count == 1
        assert output.status_counts == {"partial": 2}
        assert output.failures == []

    def test_output_is_json_safe(self):
        output = run_activity(GenerateStatementInput(
            customer_username="john.doe",
            orders=ORDERS,
            now="2024-06-15",
        ))

        json.dumps(output.statement)
        json.dumps(output.reconciled)
        assert output.statement["summary"]["grand_total"] == "1300.00"

    def test_options_override_settings(self):
        output = run_activity(GenerateStatementInput(
            customer_username="john.doe",
            orders=ORDERS,
            now="2024-06-15",
            date_locale="en-AU",
            include_currency_symbol=True,
        ))

        assert output.statement["rows"][0]["date_placed"] == "5 Jan 2024"
        assert output.statement["grand_total_display"] == "$1,300.00"

    def test_tolerance_override(self):
        output = run_activity(GenerateStatementInput(
            customer_username="john.doe",
            orders=ORDERS,
            ledger_lookups=[{"foundCount": 1, "invoices": [{"amountDue": "500.00"}]}],
            now="2024-06-15",
            tolerance="100",
        ))

        assert output.mismatch_count == 0

    @pytest.mark.parametrize("tolerance", ["NaN", "-1", "Infinity", "abc"])
    def test_bad_tolerance_override_raises(self, tolerance):
        with pytest.raises(ValueError, match="tolerance"):
            run_activity(GenerateStatementInput(
                customer_username="john.doe",
                orders=ORDERS,
                ledger_lookups=[{"foundCount": 1, "invoices": [{"amountDue": "500.00"}]}],
                now="2024-06-15",
                tolerance=tolerance,
            ))

    def test_malformed_order_reported_with_the_rest_reconciled(self):
        output = run_activity(GenerateStatementInput(
            customer_username="john.doe",
            orders=ORDERS + [
                {"OrderID": "1003", "GrandTotal": "50", "OrderPayment": "garbage"},
                {"OrderID": "1004", "GrandTotal": "75", "Username": 12345,
                 "OrderPayment": {"Amount": "25"}},
            ],
            now="2024-06-15",
        ))

        assert output.success
        assert sorted(r["order_id"] for r in output.reconciled) == ["1001", "1002", "1004"]
        assert output.failures[0]["order_id"] == "1003"
        assert output.failures[0]["error_kind"] == "InvalidInput"

    def test_invalid_orders_reported(self):
        output = run_activity(GenerateStatementInput(
            customer_username="john.doe",
            orders=ORDERS + [{"OrderID": "1003"}],
            now="2024-06-15",
        ))

        assert output.success
        assert len(output.reconciled) == 2
        assert output.failures[0]["order_id"] == "1003"
        assert output.failures[0]["error_kind"] == "InvalidInput"

    def test_no_orders_fails(self):
        output = run_activity(GenerateStatementInput(customer_username="nobody", orders=[]))

        assert not output.success
        assert output.statement is None
        assert output.error == "No orders supplied for reconciliation"

    def test_ambiguous_ledger_lookup_raises(self):
        with pytest.raises(LedgerMatchError):
            run_activity(GenerateStatementInput(
                customer_username="john.doe",
                orders=ORDERS,
                ledger_lookups=[
                    {"foundCount": 2, "invoices": [{"reference": "a"}, {"reference": "b"}]},
                ],
                now="2024-06-15",
            ))

    def test_bad_timestamp_raises(self):
        with pytest.raises(ValueError):
            run_activity(GenerateStatementInput(
                customer_username="john.doe",
                orders=ORDERS,
                now="yesterday-ish",
            ))


class TestWorkerWiring:
    """Worker registration and client configuration."""

    def test_worker_registers_statement_workflow(self):
        from workers.worker import ACTIVITIES, WORKFLOWS
        from workflows.statement_workflow import CustomerStatementWorkflow, TASK_QUEUE_DEFAULT

        assert WORKFLOWS == [CustomerStatementWorkflow]
        assert ACTIVITIES == [generate_customer_statement]
        assert TASK_QUEUE_DEFAULT == "statement-default"

    def test_client_requires_endpoint(self, monkeypatch):
        from temporal_client import get_temporal_client

        monkeypatch.delenv("TEMPORAL_ENDPOINT", raising=False)
        with pytest.raises(ValueError, match="TEMPORAL_ENDPOINT"):
            asyncio.run(get_temporal_client())

    def test_client_cert_requires_key(self, monkeypatch):
        from temporal_client import get_temporal_client

        monkeypatch.setenv("TEMPORAL_ENDPOINT", "localhost:7233")
        monkeypatch.setenv("TEMPORAL_CERT_PATH", "/tmp/client.pem")
        monkeypatch.delenv("TEMPORAL_KEY_PATH", raising=False)
        with pytest.raises(ValueError, match="TEMPORAL_KEY_PATH"):
            asyncio.run(get_temporal_client())
