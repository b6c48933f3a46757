"""Client for the dYdX off-chain order relay."""

from dexrelay.api import FOUR_WEEKS_IN_SECONDS, Api
from dexrelay.exceptions import (
    ApiConnectionError,
    ApiResponseError,
    ApiTimeoutError,
    ApiTransportError,
    DexRelayError,
    PermissionRevertError,
    SigningError,
)
from dexrelay.models import (
    TAKER_ACCOUNT_NUMBER,
    TAKER_ACCOUNT_OWNER,
    LimitOrder,
    SignedLimitOrder,
    SignedStopLimitOrder,
    StopLimitOrder,
    jsonify_order,
)
from dexrelay.permissions import PermissionRegistry, encode_trust_address_call
from dexrelay.signers import LimitOrderSigner, OrderSigner, StopLimitOrderSigner

__all__ = [
    # Client
    "Api",
    "FOUR_WEEKS_IN_SECONDS",
    # Signers
    "OrderSigner",
    "LimitOrderSigner",
    "StopLimitOrderSigner",
    # Orders
    "LimitOrder",
    "SignedLimitOrder",
    "StopLimitOrder",
    "SignedStopLimitOrder",
    "TAKER_ACCOUNT_OWNER",
    "TAKER_ACCOUNT_NUMBER",
    "jsonify_order",
    # Permissions
    "PermissionRegistry",
    "encode_trust_address_call",
    # Exceptions (all inherit from DexRelayError)
    "DexRelayError",
    "ApiTransportError",
    "ApiTimeoutError",
    "ApiConnectionError",
    "ApiResponseError",
    "SigningError",
    "PermissionRevertError",
]
