"""Customer Statement Workflow.

Per-customer workflow that reconciles the customer's orders against the
ledger and builds the statement table. Fetching orders and ledger lookups
and rendering the statement happen outside this workflow.
"""

from dataclasses import replace
from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from activities.statement import (
        generate_customer_statement,
        GenerateStatementInput,
        GenerateStatementOutput,
    )


TASK_QUEUE_DEFAULT = "statement-default"


@workflow.defn
class CustomerStatementWorkflow:
    """Workflow for generating one customer's statement.

    The reconciliation timestamp is fixed when the workflow starts so that
    activity retries reconcile against the same `now`.
    """

    def __init__(self):
        self.status = "PENDING"

    @workflow.run
    async def run(self, input: GenerateStatementInput) -> GenerateStatementOutput:
        """Execute the statement workflow.

        Args:
            input: GenerateStatementInput with raw orders and ledger lookups

        Returns:
            GenerateStatementOutput from the statement activity
        """
        workflow.logger.info(f"Starting statement workflow for {input.customer_username}")
        self.status = "IN_PROGRESS"

        if not input.now:
            input = replace(input, now=workflow.now().isoformat())

        result = await workflow.execute_activity(
            generate_customer_statement,
            input,
            start_to_close_timeout=timedelta(minutes=2),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=1),
                backoff_coefficient=2.0,
                # Bad input and ambiguous ledger matches won't self-heal
                non_retryable_error_types=["ValueError", "LedgerMatchError", "ValidationError"],
            ),
            task_queue=TASK_QUEUE_DEFAULT,
        )

        self.status = "COMPLETED" if result.success else "FAILED"
        workflow.logger.info(
            f"Statement workflow for {input.customer_username} finished: {self.status}"
        )
        return result

    @workflow.query
    def get_status(self) -> str:
        return self.status
