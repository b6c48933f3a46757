"""Pydantic models for orders, relay queries and request bodies.

Wire names are camelCase; Python attributes are snake_case. Every integer
field is a Python int (arbitrary precision) and is written to the wire as a
base-10 string.
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_serializer,
)
from pydantic.alias_generators import to_camel

from dexrelay.utils import to_iso8601

# Account that takes the other side of every newly created order; the relay
# performs the actual matching.
TAKER_ACCOUNT_OWNER = "0xf809e07870dca762B9536d61A4fBEF1a17178092"
TAKER_ACCOUNT_NUMBER = 0

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _validate_address(value: str) -> str:
    if not _ADDRESS_RE.match(value):
        raise ValueError(f"Invalid address: {value!r}")
    return value


def parse_integer(value: Any) -> int:
    """Accept ints, decimal strings and integral Decimals."""
    if isinstance(value, bool):
        raise ValueError("Booleans are not integers")
    if isinstance(value, int):
        return value
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}")
    if not parsed.is_finite() or parsed != parsed.to_integral_value():
        raise ValueError(f"Not an integer: {value!r}")
    return int(parsed)


Address = Annotated[str, AfterValidator(_validate_address)]
Integer = Annotated[int, BeforeValidator(parse_integer)]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ============================================================================
# Orders
# ============================================================================


class LimitOrder(_WireModel):
    """An unsigned limit order.

    Orders are immutable: any change means building a new order with a new
    salt and a new signature.
    """

    maker_account_owner: Address
    maker_account_number: Integer = 0
    maker_market: Integer
    taker_market: Integer
    maker_amount: Integer
    taker_amount: Integer
    expiration: Integer = Field(..., description="Unix seconds, 0 = never")
    taker_account_owner: Address = TAKER_ACCOUNT_OWNER
    taker_account_number: Integer = TAKER_ACCOUNT_NUMBER
    salt: Integer


class SignedLimitOrder(LimitOrder):
    typed_signature: str


class StopLimitOrder(LimitOrder):
    decrease_only: bool = False
    trigger_price: Integer


class SignedStopLimitOrder(StopLimitOrder):
    typed_signature: str


AnySignedOrder = Union[SignedLimitOrder, SignedStopLimitOrder]


def jsonify_order(order: AnySignedOrder) -> dict[str, str]:
    """Serialize a signed order into its wire shape.

    Keys are emitted in the relay's canonical order. Stop-limit fields are
    not part of the serialized order; the trigger price travels alongside it
    in the request body.
    """
    return {
        "typedSignature": order.typed_signature,
        "makerAccountOwner": order.maker_account_owner,
        "makerAccountNumber": str(order.maker_account_number),
        "takerAccountOwner": order.taker_account_owner,
        "takerAccountNumber": str(order.taker_account_number),
        "makerMarket": str(order.maker_market),
        "takerMarket": str(order.taker_market),
        "makerAmount": str(order.maker_amount),
        "takerAmount": str(order.taker_amount),
        "salt": str(order.salt),
        "expiration": str(order.expiration),
    }


# ============================================================================
# Request bodies
# ============================================================================


class _RequestBody(_WireModel):
    def to_payload(self) -> dict[str, Any]:
        """Dump to a JSON-ready dict; unset optional fields are omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SubmitOrderRequest(_RequestBody):
    """Body of POST /v1/dex/orders."""

    order: dict[str, str]
    fill_or_kill: bool = False
    post_only: bool = False
    trigger_price: Optional[Integer] = None
    client_id: Optional[str] = None

    @field_serializer("trigger_price")
    def _serialize_trigger_price(self, value: Optional[int]) -> Optional[str]:
        return None if value is None else str(value)


class ReplaceOrderRequest(_RequestBody):
    """Body of POST /v1/dex/orders/replace."""

    order: dict[str, str]
    fill_or_kill: bool = False
    post_only: bool = False
    cancel_id: str
    cancel_signature: str
    client_id: Optional[str] = None


# ============================================================================
# V2 query records
# ============================================================================


class _QueryV2(_WireModel):
    account_owner: Optional[Address] = None
    account_number: Optional[Integer] = None
    side: Optional[str] = None
    market: Optional[list[str]] = None
    limit: Optional[int] = None
    starting_before: Optional[datetime] = None

    @field_serializer("account_number")
    def _serialize_account_number(self, value: Optional[int]) -> Optional[str]:
        return None if value is None else str(value)

    @field_serializer("starting_before")
    def _serialize_starting_before(self, value: Optional[datetime]) -> Optional[str]:
        return None if value is None else to_iso8601(value)

    def to_query_params(self) -> dict[str, Any]:
        """Filters that were actually provided, keyed by wire name."""
        return self.model_dump(by_alias=True, exclude_none=True)


class OrderQueryV2(_QueryV2):
    """Filters for GET /v2/orders."""

    status: Optional[list[str]] = None
    order_type: Optional[list[str]] = None


class FillQueryV2(_QueryV2):
    """Filters for GET /v2/fills.

    Fill queries take no status filter.
    """

    order_id: Optional[str] = None
    transaction_hash: Optional[str] = None


class TradeQueryV2(FillQueryV2):
    """Filters for GET /v2/trades."""
