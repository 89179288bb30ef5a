"""Workflow definitions module."""

from workflows.statement_workflow import CustomerStatementWorkflow, TASK_QUEUE_DEFAULT

__all__ = ["CustomerStatementWorkflow", "TASK_QUEUE_DEFAULT"]
