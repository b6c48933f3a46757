"""Async client for the dYdX off-chain order relay.

Every public method is one request/response cycle: build the payload, sign
it through the injected signers where needed, serialize integers to base-10
strings and issue a single HTTP call. Response bodies are returned exactly
as decoded from JSON. Nothing is retried, cached or pooled.

API reference: https://docs.dydx.exchange/
"""

import asyncio
from datetime import datetime
from typing import Any, Optional, Union

import httpx
import structlog

from dexrelay.config import DEFAULT_API_ENDPOINT, DEFAULT_API_TIMEOUT_MS, Settings
from dexrelay.exceptions import ApiConnectionError, ApiResponseError, ApiTimeoutError
from dexrelay.logging import ErrorType, redact_authorization, truncate_body
from dexrelay.models import (
    AnySignedOrder,
    FillQueryV2,
    LimitOrder,
    OrderQueryV2,
    ReplaceOrderRequest,
    SignedLimitOrder,
    SignedStopLimitOrder,
    StopLimitOrder,
    SubmitOrderRequest,
    TradeQueryV2,
    jsonify_order,
    parse_integer,
)
from dexrelay.signers.base import OrderSigner
from dexrelay.utils import (
    generate_pseudo_random_256_bit_number,
    get_real_expiration,
    stringify_query,
    to_iso8601,
)

logger = structlog.get_logger(__name__)

FOUR_WEEKS_IN_SECONDS = 60 * 60 * 24 * 28

IntegerLike = Union[int, str]


def _int_str(value: Optional[IntegerLike]) -> Optional[str]:
    return None if value is None else str(parse_integer(value))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return None if value is None else to_iso8601(value)


def _joined(values: Optional[list[str]]) -> Optional[str]:
    return None if values is None else ",".join(values)


def _with_query(path: str, params: dict[str, Any]) -> str:
    query = stringify_query(params)
    return f"{path}?{query}" if query else path


class Api:
    """Client for the relay's order, fill, trade, account and market endpoints.

    The instance holds immutable configuration only (endpoint, timeout,
    signer references); calls share no state and may run concurrently.

    Typical usage:
        api = Api(LimitOrderSigner(key, 1, lo_addr), StopLimitOrderSigner(key, 1, slo_addr))
        result = await api.place_order(
            maker_account_owner=owner,
            maker_market=0,
            taker_market=1,
            maker_amount=10**18,
            taker_amount=200 * 10**6,
        )
        await api.cancel_order(result["order"]["id"], owner)
    """

    def __init__(
        self,
        limit_orders: OrderSigner,
        stop_limit_orders: OrderSigner,
        endpoint: str = DEFAULT_API_ENDPOINT,
        timeout: int = DEFAULT_API_TIMEOUT_MS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            limit_orders: Signer for standard limit orders and cancellations
            stop_limit_orders: Signer for stop-limit orders
            endpoint: Relay base URL
            timeout: Per-request timeout in milliseconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self._limit_orders = limit_orders
        self._stop_limit_orders = stop_limit_orders
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._log = logger.bind(endpoint=self._endpoint)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        limit_orders: OrderSigner,
        stop_limit_orders: OrderSigner,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "Api":
        """Build a client from Settings."""
        return cls(
            limit_orders,
            stop_limit_orders,
            endpoint=settings.api_endpoint,
            timeout=settings.api_timeout_ms,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def timeout(self) -> int:
        """Request timeout in milliseconds."""
        return self._timeout

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Issue one HTTP request and return the decoded JSON body (or raw text).

        Raises:
            ApiTimeoutError: No response within the configured timeout
            ApiResponseError: Non-2xx status (status code and body attached)
            ApiConnectionError: Any other transport failure
        """
        url = f"{self._endpoint}{path}"
        log = self._log.bind(method=method, path=path)
        log.debug("Sending request", headers=redact_authorization(headers or {}))

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout / 1000),
                transport=self._transport,
            ) as client:
                response = await client.request(method, url, json=json, headers=headers)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            log.error("Request timed out", error_type=ErrorType.API_TIMEOUT, error=str(e))
            raise ApiTimeoutError(f"{method} {path} timed out: {e}", url=url) from e
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            body = e.response.text
            log.error(
                "Request failed",
                error_type=ErrorType.API_ERROR,
                status_code=status_code,
                body=truncate_body(body),
            )
            raise ApiResponseError(
                f"{method} {path} failed: HTTP {status_code}",
                status_code=status_code,
                body=body,
                url=url,
            ) from e
        except httpx.HTTPError as e:
            log.error(
                "Request failed",
                error_type=ErrorType.API_CONNECTION_FAILED,
                error=str(e),
            )
            raise ApiConnectionError(f"{method} {path} failed: {e}", url=url) from e

        log.debug("Response received", status_code=response.status_code)
        try:
            return response.json()
        except ValueError:
            # Empty or non-JSON success bodies are handed back as text
            return response.text

    # =========================================================================
    # Order placement
    # =========================================================================

    async def place_order(
        self,
        *,
        maker_account_owner: str,
        maker_market: IntegerLike,
        taker_market: IntegerLike,
        maker_amount: IntegerLike,
        taker_amount: IntegerLike,
        maker_account_number: IntegerLike = 0,
        expiration: IntegerLike = FOUR_WEEKS_IN_SECONDS,
        fill_or_kill: bool = False,
        post_only: bool = False,
        trigger_price: Optional[IntegerLike] = None,
        signed_trigger_price: Optional[IntegerLike] = None,
        decrease_only: bool = False,
        client_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Create, sign and submit an order in one go.

        With a trigger price, a stop-limit order signed over
        ``signed_trigger_price`` (defaulting to ``trigger_price``) is built and
        the submission carries ``trigger_price``. Otherwise a standard limit
        order is built. A signing failure raises before any request is sent.
        """
        order: AnySignedOrder
        if trigger_price is not None:
            order = await self.create_stop_limit_order(
                maker_account_owner=maker_account_owner,
                maker_market=maker_market,
                taker_market=taker_market,
                maker_amount=maker_amount,
                taker_amount=taker_amount,
                maker_account_number=maker_account_number,
                expiration=expiration,
                decrease_only=decrease_only,
                trigger_price=(
                    trigger_price if signed_trigger_price is None else signed_trigger_price
                ),
            )
        else:
            order = await self.create_order(
                maker_account_owner=maker_account_owner,
                maker_market=maker_market,
                taker_market=taker_market,
                maker_amount=maker_amount,
                taker_amount=taker_amount,
                maker_account_number=maker_account_number,
                expiration=expiration,
            )

        return await self.submit_order(
            order,
            fill_or_kill=fill_or_kill,
            post_only=post_only,
            trigger_price=trigger_price,
            client_id=client_id,
        )

    async def replace_order(
        self,
        *,
        maker_account_owner: str,
        maker_market: IntegerLike,
        taker_market: IntegerLike,
        maker_amount: IntegerLike,
        taker_amount: IntegerLike,
        cancel_id: str,
        maker_account_number: IntegerLike = 0,
        expiration: IntegerLike = FOUR_WEEKS_IN_SECONDS,
        fill_or_kill: bool = False,
        post_only: bool = False,
        client_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Atomically cancel ``cancel_id`` and place a new limit order.

        The new order and the cancellation are signed concurrently; both
        must succeed before the single replace request is sent.
        """
        order, cancel_signature = await asyncio.gather(
            self.create_order(
                maker_account_owner=maker_account_owner,
                maker_market=maker_market,
                taker_market=taker_market,
                maker_amount=maker_amount,
                taker_amount=taker_amount,
                maker_account_number=maker_account_number,
                expiration=expiration,
            ),
            self._limit_orders.sign_cancel_order_by_hash(cancel_id, maker_account_owner),
        )
        return await self.submit_replace_order(
            order,
            fill_or_kill=fill_or_kill,
            post_only=post_only,
            cancel_id=cancel_id,
            cancel_signature=cancel_signature,
            client_id=client_id,
        )

    async def submit_replace_order(
        self,
        order: SignedLimitOrder,
        fill_or_kill: bool = False,
        post_only: bool = False,
        *,
        cancel_id: str,
        cancel_signature: str,
        client_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Submit an already signed replacement order."""
        body = ReplaceOrderRequest(
            order=jsonify_order(order),
            fill_or_kill=fill_or_kill,
            post_only=post_only,
            cancel_id=cancel_id,
            cancel_signature=cancel_signature,
            client_id=client_id,
        )
        self._log.info(
            "Submitting replace order",
            cancel_id=cancel_id,
            maker_account_owner=order.maker_account_owner,
        )
        return await self._request("POST", "/v1/dex/orders/replace", json=body.to_payload())

    async def create_order(
        self,
        *,
        maker_account_owner: str,
        maker_market: IntegerLike,
        taker_market: IntegerLike,
        maker_amount: IntegerLike,
        taker_amount: IntegerLike,
        maker_account_number: IntegerLike = 0,
        expiration: IntegerLike = FOUR_WEEKS_IN_SECONDS,
    ) -> SignedLimitOrder:
        """Create and sign, but do not place, a limit order.

        ``expiration`` is relative, in seconds (0 = never expires).
        """
        order = LimitOrder(
            maker_account_owner=maker_account_owner,
            maker_account_number=maker_account_number,
            maker_market=maker_market,
            taker_market=taker_market,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            expiration=get_real_expiration(parse_integer(expiration)),
            salt=generate_pseudo_random_256_bit_number(),
        )
        typed_signature = await self._limit_orders.sign_order(order)
        return SignedLimitOrder(**order.model_dump(), typed_signature=typed_signature)

    async def create_stop_limit_order(
        self,
        *,
        maker_account_owner: str,
        maker_market: IntegerLike,
        taker_market: IntegerLike,
        maker_amount: IntegerLike,
        taker_amount: IntegerLike,
        trigger_price: IntegerLike,
        maker_account_number: IntegerLike = 0,
        expiration: IntegerLike = FOUR_WEEKS_IN_SECONDS,
        decrease_only: bool = False,
    ) -> SignedStopLimitOrder:
        """Create and sign, but do not place, a stop-limit order."""
        order = StopLimitOrder(
            maker_account_owner=maker_account_owner,
            maker_account_number=maker_account_number,
            maker_market=maker_market,
            taker_market=taker_market,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            expiration=get_real_expiration(parse_integer(expiration)),
            salt=generate_pseudo_random_256_bit_number(),
            decrease_only=decrease_only,
            trigger_price=trigger_price,
        )
        typed_signature = await self._stop_limit_orders.sign_order(order)
        return SignedStopLimitOrder(**order.model_dump(), typed_signature=typed_signature)

    async def submit_order(
        self,
        order: AnySignedOrder,
        fill_or_kill: bool = False,
        post_only: bool = False,
        trigger_price: Optional[IntegerLike] = None,
        client_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Submit an already signed order.

        ``trigger_price`` and ``client_id`` are left out of the body entirely
        when not given.
        """
        body = SubmitOrderRequest(
            order=jsonify_order(order),
            fill_or_kill=fill_or_kill,
            post_only=post_only,
            trigger_price=trigger_price,
            client_id=client_id,
        )
        self._log.info(
            "Submitting order",
            maker_account_owner=order.maker_account_owner,
            maker_market=str(order.maker_market),
            taker_market=str(order.taker_market),
            stop_limit=trigger_price is not None,
        )
        return await self._request("POST", "/v1/dex/orders", json=body.to_payload())

    async def cancel_order(self, order_id: str, maker_account_owner: str) -> dict[str, Any]:
        """Cancel an order; the cancel signature is sent as a bearer token."""
        signature = await self._limit_orders.sign_cancel_order_by_hash(
            order_id,
            maker_account_owner,
        )
        self._log.info("Cancelling order", order_id=order_id)
        return await self._request(
            "DELETE",
            f"/v1/dex/orders/{order_id}",
            headers={"authorization": f"Bearer {signature}"},
        )

    # =========================================================================
    # Orders
    # =========================================================================

    async def get_orders_v2(
        self,
        *,
        account_owner: Optional[str] = None,
        account_number: Optional[IntegerLike] = None,
        side: Optional[str] = None,
        status: Optional[list[str]] = None,
        order_type: Optional[list[str]] = None,
        market: Optional[list[str]] = None,
        limit: Optional[int] = None,
        starting_before: Optional[datetime] = None,
    ) -> dict[str, Any]:
        query = OrderQueryV2(
            account_owner=account_owner,
            account_number=account_number,
            side=side,
            status=status,
            order_type=order_type,
            market=market,
            limit=limit,
            starting_before=starting_before,
        )
        return await self._request("GET", _with_query("/v2/orders", query.to_query_params()))

    async def get_orders(
        self,
        *,
        limit: Optional[int] = None,
        starting_before: Optional[datetime] = None,
        pairs: Optional[list[str]] = None,
        maker_account_owner: Optional[str] = None,
        maker_account_number: Optional[IntegerLike] = None,
        status: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """List orders (v1).

        The account number filter only applies together with an owner, and
        defaults to account 0.
        """
        account_number = None
        if maker_account_owner is not None:
            account_number = _int_str(maker_account_number) or "0"

        params = {
            "startingBefore": _iso(starting_before),
            "limit": limit,
            "pairs": _joined(pairs),
            "status": _joined(status),
            "makerAccountOwner": maker_account_owner,
            "makerAccountNumber": account_number,
        }
        return await self._request("GET", _with_query("/v1/dex/orders", params))

    async def get_order_v2(self, order_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/v2/orders/{order_id}")

    async def get_order(self, order_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/v1/dex/orders/{order_id}")

    # =========================================================================
    # Fills and trades
    # =========================================================================

    async def get_fills_v2(
        self,
        *,
        order_id: Optional[str] = None,
        side: Optional[str] = None,
        market: Optional[list[str]] = None,
        transaction_hash: Optional[str] = None,
        account_owner: Optional[str] = None,
        account_number: Optional[IntegerLike] = None,
        starting_before: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> dict[str, Any]:
        query = FillQueryV2(
            order_id=order_id,
            side=side,
            market=market,
            transaction_hash=transaction_hash,
            account_owner=account_owner,
            account_number=account_number,
            starting_before=starting_before,
            limit=limit,
        )
        return await self._request("GET", _with_query("/v2/fills", query.to_query_params()))

    async def get_fills(
        self,
        *,
        maker_account_owner: Optional[str] = None,
        starting_before: Optional[datetime] = None,
        limit: Optional[int] = None,
        pairs: Optional[list[str]] = None,
        maker_account_number: Optional[IntegerLike] = None,
    ) -> dict[str, Any]:
        params = self._v1_history_params(
            maker_account_owner, starting_before, limit, pairs, maker_account_number
        )
        return await self._request("GET", _with_query("/v1/dex/fills", params))

    async def get_trades_v2(
        self,
        *,
        order_id: Optional[str] = None,
        side: Optional[str] = None,
        market: Optional[list[str]] = None,
        transaction_hash: Optional[str] = None,
        account_owner: Optional[str] = None,
        account_number: Optional[IntegerLike] = None,
        starting_before: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> dict[str, Any]:
        query = TradeQueryV2(
            order_id=order_id,
            side=side,
            market=market,
            transaction_hash=transaction_hash,
            account_owner=account_owner,
            account_number=account_number,
            starting_before=starting_before,
            limit=limit,
        )
        return await self._request("GET", _with_query("/v2/trades", query.to_query_params()))

    async def get_trades(
        self,
        *,
        maker_account_owner: Optional[str] = None,
        starting_before: Optional[datetime] = None,
        limit: Optional[int] = None,
        pairs: Optional[list[str]] = None,
        maker_account_number: Optional[IntegerLike] = None,
    ) -> dict[str, Any]:
        params = self._v1_history_params(
            maker_account_owner, starting_before, limit, pairs, maker_account_number
        )
        return await self._request("GET", _with_query("/v1/dex/trades", params))

    @staticmethod
    def _v1_history_params(
        maker_account_owner: Optional[str],
        starting_before: Optional[datetime],
        limit: Optional[int],
        pairs: Optional[list[str]],
        maker_account_number: Optional[IntegerLike],
    ) -> dict[str, Any]:
        # v1 fills/trades always send an account number, defaulting to 0
        return {
            "makerAccountOwner": maker_account_owner,
            "startingBefore": _iso(starting_before),
            "limit": limit,
            "pairs": _joined(pairs),
            "makerAccountNumber": _int_str(maker_account_number) or "0",
        }

    # =========================================================================
    # Accounts and markets
    # =========================================================================

    async def get_account_balances(
        self,
        account_owner: str,
        account_number: IntegerLike = 0,
    ) -> dict[str, Any]:
        number = _int_str(account_number)
        return await self._request("GET", f"/v1/accounts/{account_owner}?number={number}")

    async def get_orderbook(
        self,
        pair: str,
        min_size: Optional[IntegerLike] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> dict[str, Any]:
        """Open orders for one pair, via the v1 orders listing."""
        params = {
            "pairs": pair or None,
            "limit": limit,
            "offset": offset,
            "minSize": _int_str(min_size),
        }
        return await self._request("GET", _with_query("/v1/dex/orders", params))

    async def get_orderbook_v2(self, market: str) -> dict[str, Any]:
        """Aggregated bids and asks for one market."""
        return await self._request("GET", f"/v1/orderbook/{market}")

    async def get_markets(self) -> dict[str, Any]:
        return await self._request("GET", "/v1/markets")
