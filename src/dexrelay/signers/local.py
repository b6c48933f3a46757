"""Local private-key order signers (EIP-712 typed data).

Orders and cancellations are hashed per EIP-712 against the LimitOrders /
StopLimitOrders contract domain and signed with eth-account. The resulting
typed signature is the 65-byte r||s||v signature followed by a one-byte
signature type.
"""

from typing import Any, Union

import structlog
from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak, to_checksum_address

from dexrelay.config import Settings, get_settings
from dexrelay.exceptions import SigningError
from dexrelay.logging import ErrorType
from dexrelay.models import LimitOrder, StopLimitOrder
from dexrelay.signers.base import OrderSigner

logger = structlog.get_logger(__name__)

# Signature type suffix: the digest was signed as-is, with no message prefix
SIGNATURE_TYPE_NO_PREPEND = "00"

DOMAIN_VERSION = "1.1"
CANCEL_ACTION = "Cancel Orders"

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

_ACCOUNT_FIELDS = [
    {"name": "makerAccountOwner", "type": "address"},
    {"name": "makerAccountNumber", "type": "uint256"},
    {"name": "takerAccountOwner", "type": "address"},
    {"name": "takerAccountNumber", "type": "uint256"},
]

_AMOUNT_FIELDS = [
    {"name": "makerMarket", "type": "uint256"},
    {"name": "takerMarket", "type": "uint256"},
    {"name": "makerAmount", "type": "uint256"},
    {"name": "takerAmount", "type": "uint256"},
]

LIMIT_ORDER_TYPE = _AMOUNT_FIELDS + _ACCOUNT_FIELDS + [
    {"name": "expiration", "type": "uint256"},
    {"name": "salt", "type": "uint256"},
]

STOP_LIMIT_ORDER_TYPE = _AMOUNT_FIELDS + _ACCOUNT_FIELDS + [
    {"name": "triggerPrice", "type": "uint256"},
    {"name": "decreaseOnly", "type": "bool"},
    {"name": "expiration", "type": "uint256"},
    {"name": "salt", "type": "uint256"},
]

CANCEL_ORDER_TYPE = [
    {"name": "action", "type": "string"},
    {"name": "orderHashes", "type": "bytes32[]"},
]


class _TypedDataSigner(OrderSigner):
    """Shared EIP-712 machinery; subclasses pick the domain and struct."""

    domain_name: str
    order_type_name: str
    order_type: list[dict[str, str]]
    cancel_type_name: str
    settings_address_field: str

    def __init__(
        self,
        private_key: Union[str, bytes],
        chain_id: int,
        verifying_contract: str,
    ) -> None:
        """Initialize the signer.

        Args:
            private_key: Hex (with or without 0x) or raw 32-byte key
            chain_id: Chain the verifying contract lives on
            verifying_contract: LimitOrders / StopLimitOrders contract address
        """
        self._account = Account.from_key(private_key)
        self._chain_id = chain_id
        self._verifying_contract = to_checksum_address(verifying_contract)
        self._log = logger.bind(signer=self.address, domain=self.domain_name)

    @classmethod
    def from_settings(
        cls,
        private_key: Union[str, bytes],
        settings: Settings | None = None,
    ) -> "_TypedDataSigner":
        """Build a signer for the chain and contract named in settings."""
        settings = settings or get_settings()
        return cls(
            private_key,
            chain_id=settings.chain_id,
            verifying_contract=getattr(settings, cls.settings_address_field),
        )

    @property
    def address(self) -> str:
        """Checksummed address of the signing key."""
        return self._account.address

    def _domain(self) -> dict[str, Any]:
        return {
            "name": self.domain_name,
            "version": DOMAIN_VERSION,
            "chainId": self._chain_id,
            "verifyingContract": self._verifying_contract,
        }

    def _order_message(self, order: LimitOrder) -> dict[str, Any]:
        return {
            "makerMarket": order.maker_market,
            "takerMarket": order.taker_market,
            "makerAmount": order.maker_amount,
            "takerAmount": order.taker_amount,
            "makerAccountOwner": to_checksum_address(order.maker_account_owner),
            "makerAccountNumber": order.maker_account_number,
            "takerAccountOwner": to_checksum_address(order.taker_account_owner),
            "takerAccountNumber": order.taker_account_number,
            "expiration": order.expiration,
            "salt": order.salt,
        }

    def _order_typed_data(self, order: LimitOrder) -> SignableMessage:
        return encode_typed_data(full_message={
            "types": {
                "EIP712Domain": EIP712_DOMAIN_TYPE,
                self.order_type_name: self.order_type,
            },
            "primaryType": self.order_type_name,
            "domain": self._domain(),
            "message": self._order_message(order),
        })

    def _cancel_typed_data(self, order_hash: str) -> SignableMessage:
        return encode_typed_data(full_message={
            "types": {
                "EIP712Domain": EIP712_DOMAIN_TYPE,
                self.cancel_type_name: CANCEL_ORDER_TYPE,
            },
            "primaryType": self.cancel_type_name,
            "domain": self._domain(),
            "message": {
                "action": CANCEL_ACTION,
                "orderHashes": [bytes.fromhex(order_hash.removeprefix("0x"))],
            },
        })

    def _sign(self, signable: SignableMessage) -> str:
        signed = self._account.sign_message(signable)
        return "0x" + bytes(signed.signature).hex() + SIGNATURE_TYPE_NO_PREPEND

    def get_order_hash(self, order: LimitOrder) -> str:
        """Return the EIP-712 digest of an order as 0x-prefixed hex.

        This is the id the relay assigns to the order once placed.
        """
        signable = self._order_typed_data(order)
        digest = keccak(b"\x19" + signable.version + signable.header + signable.body)
        return "0x" + digest.hex()

    async def sign_order(self, order: LimitOrder) -> str:
        try:
            typed_signature = self._sign(self._order_typed_data(order))
        except Exception as e:
            self._log.warning(
                "Order signing failed",
                error_type=ErrorType.SIGNING_FAILED,
                error=str(e),
            )
            raise SigningError(f"Failed to sign order: {e}") from e

        self._log.debug("Order signed", salt=str(order.salt))
        return typed_signature

    async def sign_cancel_order_by_hash(
        self,
        order_hash: str,
        maker_account_owner: str,
    ) -> str:
        if maker_account_owner.lower() != self.address.lower():
            self._log.warning(
                "Cancel requested for foreign account",
                error_type=ErrorType.SIGNING_FAILED,
                maker_account_owner=maker_account_owner,
            )
            raise SigningError(
                f"Signer {self.address} cannot cancel orders of {maker_account_owner}"
            )

        try:
            typed_signature = self._sign(self._cancel_typed_data(order_hash))
        except Exception as e:
            self._log.warning(
                "Cancel signing failed",
                error_type=ErrorType.SIGNING_FAILED,
                order_hash=order_hash,
                error=str(e),
            )
            raise SigningError(f"Failed to sign cancellation: {e}") from e

        self._log.debug("Cancellation signed", order_hash=order_hash)
        return typed_signature


class LimitOrderSigner(_TypedDataSigner):
    """Signs standard limit orders for the LimitOrders contract."""

    domain_name = "LimitOrders"
    order_type_name = "LimitOrder"
    order_type = LIMIT_ORDER_TYPE
    cancel_type_name = "CancelLimitOrder"
    settings_address_field = "limit_orders_address"


class StopLimitOrderSigner(_TypedDataSigner):
    """Signs stop-limit orders for the StopLimitOrders contract."""

    domain_name = "StopLimitOrders"
    order_type_name = "StopLimitOrder"
    order_type = STOP_LIMIT_ORDER_TYPE
    cancel_type_name = "CancelLimitOrder"
    settings_address_field = "stop_limit_orders_address"

    def _order_message(self, order: LimitOrder) -> dict[str, Any]:
        if not isinstance(order, StopLimitOrder):
            raise TypeError("StopLimitOrderSigner only signs StopLimitOrder")
        message = super()._order_message(order)
        message["triggerPrice"] = order.trigger_price
        message["decreaseOnly"] = order.decrease_only
        return message
