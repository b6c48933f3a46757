"""Abstract order signer interface.

The API client never holds keys. It is handed one signer for limit orders
and one for stop-limit orders, and only ever calls the two methods below.
Any key-management scheme (local key, hardware wallet, remote signer) can
sit behind this interface.
"""

from abc import ABC, abstractmethod

from dexrelay.models import LimitOrder


class OrderSigner(ABC):
    """Produces typed signatures for orders and order cancellations.

    Typical usage:
        signer = LimitOrderSigner(private_key, chain_id=1)
        typed_signature = await signer.sign_order(order)
        cancel_signature = await signer.sign_cancel_order_by_hash(
            order_hash, maker_account_owner
        )
    """

    @abstractmethod
    async def sign_order(self, order: LimitOrder) -> str:
        """Sign an order.

        Args:
            order: Unsigned order (a StopLimitOrder for stop-limit signers)

        Returns:
            Hex typed signature, 0x-prefixed

        Raises:
            SigningError: If the order cannot be signed
        """

    @abstractmethod
    async def sign_cancel_order_by_hash(
        self,
        order_hash: str,
        maker_account_owner: str,
    ) -> str:
        """Sign a cancellation for a previously placed order.

        Args:
            order_hash: Relay order id (the order's hash)
            maker_account_owner: Address that owns the order

        Returns:
            Hex typed signature, 0x-prefixed

        Raises:
            SigningError: If the cancellation cannot be signed
        """
