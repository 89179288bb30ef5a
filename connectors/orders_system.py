"""Orders-system payload models.

These models map the raw order and customer payloads returned by the
orders system (and the automation endpoint in front of it) onto the
canonical models in /core/models/. The same records arrive with
XML-derived PascalCase names ("OrderID", "GrandTotal", "OrderPayment")
or JSON camelCase names ("id", "grandTotal", "payments"); every field
fallback lives here so the engine's input contract stays fixed.

XML-to-JSON conversion collapses a one-element array into a lone object
and turns numeric-looking text into numbers. List fields therefore accept
a lone object, and text fields accept numbers.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

from core.models.canonical import (
    BillingAddress,
    CustomerRecord,
    OrderRecord,
    PaymentEntry,
)
from core.observability.logging import get_logger


logger = get_logger(__name__)


# =============================================================================
# Lenient Value Types
# =============================================================================

def as_text(value: Any) -> Any:
    """Numbers become text. Other values pass through for validation."""
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    return value


def as_list(value: Any) -> Any:
    """A lone object becomes a one-element list."""
    if isinstance(value, dict):
        return [value]
    return value


TextValue = Annotated[Optional[str], BeforeValidator(as_text)]


# =============================================================================
# Raw Payload Models
# =============================================================================

class OrdersSystemModel(BaseModel):
    """Base model for raw orders-system entities."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RawOrderPayment(OrdersSystemModel):
    """Payment line of an order (OrderPayment[] / payments[])."""
    amount: Any = Field(None, validation_alias=AliasChoices("Amount", "amount"))


class RawOrder(OrdersSystemModel):
    """Order as returned by GetOrder."""
    order_id: TextValue = Field(
        None, validation_alias=AliasChoices("OrderID", "id", "orderId", "ID")
    )
    username: TextValue = Field(None, validation_alias=AliasChoices("Username", "username"))
    email: TextValue = Field(None, validation_alias=AliasChoices("Email", "email"))
    order_status: TextValue = Field(
        None, validation_alias=AliasChoices("OrderStatus", "orderStatus", "status")
    )
    grand_total: Any = Field(None, validation_alias=AliasChoices("GrandTotal", "grandTotal"))
    date_payment_due: Any = Field(
        None, validation_alias=AliasChoices("DatePaymentDue", "datePaymentDue")
    )
    date_placed: Any = Field(None, validation_alias=AliasChoices("DatePlaced", "datePlaced"))
    payments: Annotated[Optional[List[RawOrderPayment]], BeforeValidator(as_list)] = Field(
        None, validation_alias=AliasChoices("OrderPayment", "payments")
    )

    def to_order_record(self) -> OrderRecord:
        """Convert to the canonical OrderRecord."""
        order_id = self.order_id.strip() if self.order_id is not None else None
        return OrderRecord(
            order_id=order_id or None,
            username=self.username,
            email=self.email,
            order_status=self.order_status,
            grand_total=self.grand_total,
            date_payment_due=self.date_payment_due,
            date_placed=self.date_placed,
            payments=[PaymentEntry(amount=p.amount) for p in (self.payments or [])],
        )


class RawBillingAddress(OrdersSystemModel):
    """BillingAddress sub-object of a customer."""
    first_name: TextValue = Field(
        None, validation_alias=AliasChoices("BillFirstName", "firstName")
    )
    last_name: TextValue = Field(
        None, validation_alias=AliasChoices("BillLastName", "lastName")
    )
    company: TextValue = Field(None, validation_alias=AliasChoices("BillCompany", "company"))


class RawCustomer(OrdersSystemModel):
    """Customer as returned by GetCustomer."""
    username: TextValue = Field(None, validation_alias=AliasChoices("Username", "username"))
    email: TextValue = Field(
        None, validation_alias=AliasChoices("EmailAddress", "Email", "email")
    )
    billing_address: Optional[RawBillingAddress] = Field(
        None, validation_alias=AliasChoices("BillingAddress", "billingAddress")
    )
    account_balance: Any = Field(
        None, validation_alias=AliasChoices("AccountBalance", "accountBalance")
    )

    def to_customer_record(self) -> CustomerRecord:
        """Convert to the canonical CustomerRecord."""
        address = None
        if self.billing_address is not None:
            address = BillingAddress(
                first_name=self.billing_address.first_name,
                last_name=self.billing_address.last_name,
                company=self.billing_address.company,
            )
        return CustomerRecord(
            username=self.username,
            email=self.email,
            billing_address=address,
            account_balance=self.account_balance,
        )


# =============================================================================
# Response Parsing
# =============================================================================

def _records(payload: Union[Dict[str, Any], List[Dict[str, Any]], None], key: str) -> List[Dict[str, Any]]:
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    records = payload.get(key) or []
    return records if isinstance(records, list) else [records]


def _raw_order_id(raw: Any) -> Optional[str]:
    """Best-effort order id of a record that failed validation."""
    if not isinstance(raw, dict):
        return None
    for key in ("OrderID", "id", "orderId", "ID"):
        value = as_text(raw.get(key))
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_order(raw: Any) -> OrderRecord:
    """Parse one order record.

    A record that does not validate keeps only its order id. The engine then
    reports it as an InvalidInput failure and the rest of the batch still
    reconciles.
    """
    try:
        return RawOrder.model_validate(raw).to_order_record()
    except ValidationError as e:
        order_id = _raw_order_id(raw)
        logger.warning(
            f"Malformed order record {order_id!r}: {e.error_count()} validation error(s)",
            extra_fields={"order_id": order_id, "errors": [err["loc"] for err in e.errors()]},
        )
        return OrderRecord(order_id=order_id)


def parse_orders_response(payload) -> List[OrderRecord]:
    """Parse a GetOrder response ({"Order": [...]}) or a bare list of orders."""
    return [parse_order(r) for r in _records(payload, "Order")]


def parse_customers_response(payload) -> List[CustomerRecord]:
    """Parse a GetCustomer response ({"Customer": [...]}) or a bare list of customers.

    Customer records that do not validate are skipped with a warning.
    """
    customers = []
    for raw in _records(payload, "Customer"):
        try:
            customers.append(RawCustomer.model_validate(raw).to_customer_record())
        except ValidationError as e:
            logger.warning(f"Skipping malformed customer record: {e.error_count()} validation error(s)")
    return customers
