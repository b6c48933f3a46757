"""Order signers.

OrderSigner is the interface the API client is built against; the local
signers are private-key implementations of it.
"""

from dexrelay.signers.base import OrderSigner
from dexrelay.signers.local import LimitOrderSigner, StopLimitOrderSigner

__all__ = [
    "OrderSigner",
    "LimitOrderSigner",
    "StopLimitOrderSigner",
]
