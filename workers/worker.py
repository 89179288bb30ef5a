"""Worker for the customer statement pipeline.

Connects to Temporal, listens on the statement task queue and executes the
statement workflow and its activity.

Run with --queue <name> to poll a different queue (e.g. a staging queue).
"""

import argparse
import asyncio
import sys
from pathlib import Path

from temporalio.worker import Worker

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import load_settings
from core.observability.logging import configure_logging, get_logger
from temporal_client import get_temporal_client
from workflows.statement_workflow import CustomerStatementWorkflow, TASK_QUEUE_DEFAULT
from activities.statement import generate_customer_statement


logger = get_logger(__name__)

WORKFLOWS = [CustomerStatementWorkflow]
ACTIVITIES = [generate_customer_statement]


async def run_worker(queue: str = TASK_QUEUE_DEFAULT):
    """Start a worker listening on the given task queue.

    Args:
        queue: Task queue to poll

    Raises:
        Exception: If connection to Temporal fails
    """
    client = await get_temporal_client()
    logger.info(f"Connected to Temporal: {client.namespace}")

    worker = Worker(
        client,
        task_queue=queue,
        workflows=WORKFLOWS,
        activities=ACTIVITIES,
    )
    logger.info(
        f"Worker created for queue '{queue}': "
        f"{len(WORKFLOWS)} workflows, {len(ACTIVITIES)} activities"
    )

    try:
        logger.info("Worker running... (Ctrl+C to stop)")
        await worker.run()
    except Exception as e:
        logger.error(f"Worker error: {e}", exc_info=True)
        raise


def main():
    """Entry point for worker with CLI args."""
    parser = argparse.ArgumentParser(description="Customer Statement Temporal Worker")
    parser.add_argument(
        "--queue", "-q",
        default=TASK_QUEUE_DEFAULT,
        help=f"Task queue to poll (default: {TASK_QUEUE_DEFAULT})"
    )
    args = parser.parse_args()

    settings = load_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    try:
        asyncio.run(run_worker(queue=args.queue))
    except KeyboardInterrupt:
        logger.info("Worker interrupted by user")


if __name__ == "__main__":
    main()
