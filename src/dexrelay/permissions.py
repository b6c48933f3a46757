"""Permission delegation registry.

Models the on-chain Permission contract: each account keeps a set of
delegates it trusts to sign on its behalf. An account can only change its
own delegations, and can never delegate to itself. A call either commits
its single assignment or reverts with no state change.

``encode_trust_address_call`` produces the calldata for sending the same
call to the deployed contract.
"""

import structlog
from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from dexrelay.exceptions import PermissionRevertError
from dexrelay.logging import ErrorType

logger = structlog.get_logger(__name__)

TRUST_ADDRESS_SIGNATURE = "trustAddress(address,bool)"


def encode_trust_address_call(delegate: str, trusted: bool) -> str:
    """ABI-encode a ``trustAddress(delegate, trusted)`` call.

    Returns:
        0x-prefixed calldata: 4-byte selector followed by the encoded args
    """
    selector = function_signature_to_4byte_selector(TRUST_ADDRESS_SIGNATURE)
    args = encode(["address", "bool"], [to_checksum_address(delegate), trusted])
    return "0x" + (selector + args).hex()


class PermissionRegistry:
    """In-memory state of the Permission contract.

    Addresses are compared as 20-byte values, so mixed-case and lower-case
    spellings of the same address are the same key.
    """

    def __init__(self) -> None:
        self._trusted: dict[tuple[str, str], bool] = {}

    @staticmethod
    def _key(address: str) -> str:
        return to_checksum_address(address)

    def trust_address(self, sender: str, delegate: str, trusted: bool) -> None:
        """Set whether ``sender`` trusts ``delegate``.

        Idempotent: repeating the same assignment is not an error.

        Args:
            sender: Account making the call (msg.sender)
            delegate: Account being trusted or untrusted
            trusted: New trust flag

        Raises:
            PermissionRevertError: If delegate is the sender itself
        """
        owner = self._key(sender)
        target = self._key(delegate)
        if owner == target:
            logger.warning(
                "trustAddress reverted",
                error_type=ErrorType.PERMISSION_REVERTED,
                sender=owner,
            )
            raise PermissionRevertError("Cannot trust self")

        self._trusted[(owner, target)] = bool(trusted)
        logger.info("Delegation updated", owner=owner, delegate=target, trusted=bool(trusted))

    def is_trusted(self, owner: str, delegate: str) -> bool:
        """Storage lookup; unset pairs are untrusted."""
        return self._trusted.get((self._key(owner), self._key(delegate)), False)
