"""Core module - system-neutral statement components.

This module contains the canonical data models, settings and observability
used by the reconciliation engine. It is intentionally independent of the
orders system and the ledger system.

Source-specific payload handling belongs in /connectors/.
"""

__version__ = "1.0.0"
