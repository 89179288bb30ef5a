"""Ledger-system payload models.

Maps invoice lookups from the accounting (ledger) system onto the
canonical LedgerInvoiceRecord. A lookup returns
{"foundCount": n, "invoices": [...]}; invoice fields arrive either as
JSON camelCase ("amountDue") or XML-derived PascalCase ("AmountDue").
"""

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from core.models.canonical import LedgerInvoiceRecord


class LedgerMatchError(Exception):
    """Several ledger invoices were found and none matches the given reference."""
    def __init__(self, message: str, found_count: int = 0, reference: Optional[str] = None):
        super().__init__(message)
        self.found_count = found_count
        self.reference = reference


class LedgerSystemModel(BaseModel):
    """Base model for raw ledger-system entities."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RawLedgerInvoice(LedgerSystemModel):
    """Invoice as formatted by the ledger lookup."""
    invoice_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("invoiceNumber", "InvoiceNumber")
    )
    reference: Optional[str] = Field(None, validation_alias=AliasChoices("reference", "Reference"))
    total: Any = Field(None, validation_alias=AliasChoices("total", "Total"))
    amount_paid: Any = Field(None, validation_alias=AliasChoices("amountPaid", "AmountPaid"))
    amount_due: Any = Field(None, validation_alias=AliasChoices("amountDue", "AmountDue"))

    def to_ledger_invoice(self) -> LedgerInvoiceRecord:
        """Convert to the canonical LedgerInvoiceRecord."""
        return LedgerInvoiceRecord(
            total=self.total,
            amount_paid=self.amount_paid,
            amount_due=self.amount_due,
            invoice_number=self.invoice_number,
            reference=self.reference,
        )


class RawLedgerLookup(LedgerSystemModel):
    """Result of looking up the ledger invoice(s) for one order."""
    found_count: Optional[int] = Field(None, validation_alias=AliasChoices("foundCount", "FoundCount"))
    invoices: List[RawLedgerInvoice] = Field(
        default_factory=list, validation_alias=AliasChoices("invoices", "Invoices")
    )

    def to_ledger_invoice(self, reference: Optional[str] = None) -> Optional[LedgerInvoiceRecord]:
        """Pick the ledger invoice for an order.

        No invoice found -> None. Exactly one -> that invoice. Several -> the
        one whose reference or invoice number equals `reference`.

        Raises:
            LedgerMatchError: If several invoices were found and none matches
        """
        found = self.found_count if self.found_count is not None else len(self.invoices)
        if found <= 0 or not self.invoices:
            return None
        if len(self.invoices) == 1:
            return self.invoices[0].to_ledger_invoice()

        if reference is not None:
            for invoice in self.invoices:
                if reference in (invoice.reference, invoice.invoice_number):
                    return invoice.to_ledger_invoice()

        raise LedgerMatchError(
            f"Ledger returned {len(self.invoices)} invoices and none matches reference {reference!r}",
            found_count=found,
            reference=reference,
        )


def parse_ledger_lookup(payload, reference: Optional[str] = None) -> Optional[LedgerInvoiceRecord]:
    """Parse a raw ledger lookup payload into zero or one ledger invoice."""
    if payload is None:
        return None
    return RawLedgerLookup.model_validate(payload).to_ledger_invoice(reference)
