"""Tests for order models, request bodies and query records."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from dexrelay.models import (
    TAKER_ACCOUNT_OWNER,
    FillQueryV2,
    LimitOrder,
    OrderQueryV2,
    ReplaceOrderRequest,
    SignedLimitOrder,
    SignedStopLimitOrder,
    SubmitOrderRequest,
    jsonify_order,
    parse_integer,
)

MAKER = "0x1111111111111111111111111111111111111111"


def make_signed_order(**overrides) -> SignedLimitOrder:
    fields = {
        "maker_account_owner": MAKER,
        "maker_market": 0,
        "taker_market": 1,
        "maker_amount": 10**18,
        "taker_amount": 200 * 10**6,
        "expiration": 1_600_000_000,
        "salt": 2**255 + 17,
        "typed_signature": "0xsig",
    }
    fields.update(overrides)
    return SignedLimitOrder(**fields)


class TestParseInteger:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (5, 5),
            ("42", 42),
            (" 7 ", 7),
            (Decimal("1000"), 1000),
            ("1e3", 1000),
            ("123456789012345678901234567890", 123456789012345678901234567890),
        ],
    )
    def test_accepts_integral_values(self, value, expected):
        assert parse_integer(value) == expected

    @pytest.mark.parametrize("value", ["1.5", "abc", Decimal("NaN"), "Infinity", True])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValueError):
            parse_integer(value)


class TestLimitOrder:
    def test_taker_side_defaults_to_relay_account(self):
        order = LimitOrder(
            maker_account_owner=MAKER,
            maker_market=0,
            taker_market=1,
            maker_amount=1,
            taker_amount=1,
            expiration=0,
            salt=1,
        )
        assert order.taker_account_owner == TAKER_ACCOUNT_OWNER
        assert order.taker_account_number == 0
        assert order.maker_account_number == 0

    def test_orders_are_immutable(self):
        order = make_signed_order()
        with pytest.raises(ValidationError):
            order.salt = 1

    def test_invalid_address_rejected(self):
        with pytest.raises(ValidationError):
            make_signed_order(maker_account_owner="0x1234")

    def test_string_amounts_are_coerced(self):
        order = make_signed_order(maker_amount="123456789012345678901234567890")
        assert order.maker_amount == 123456789012345678901234567890

    def test_accepts_wire_aliases(self):
        order = SignedLimitOrder.model_validate(jsonify_order(make_signed_order()))
        assert order == make_signed_order()


class TestJsonifyOrder:
    def test_key_order_and_string_integers(self):
        wire = jsonify_order(make_signed_order())
        assert list(wire) == [
            "typedSignature",
            "makerAccountOwner",
            "makerAccountNumber",
            "takerAccountOwner",
            "takerAccountNumber",
            "makerMarket",
            "takerMarket",
            "makerAmount",
            "takerAmount",
            "salt",
            "expiration",
        ]
        assert wire["makerAmount"] == "1000000000000000000"
        assert wire["salt"] == str(2**255 + 17)
        assert wire["takerAccountNumber"] == "0"
        assert all(isinstance(v, str) for v in wire.values())

    def test_large_amounts_survive_serialization(self):
        amount = 123456789012345678901234567890
        wire = jsonify_order(make_signed_order(maker_amount=amount))
        assert "e" not in wire["makerAmount"].lower()
        assert int(wire["makerAmount"]) == amount

    def test_stop_limit_fields_not_in_serialized_order(self):
        order = SignedStopLimitOrder(
            **make_signed_order().model_dump(),
            trigger_price=1500,
            decrease_only=True,
        )
        wire = jsonify_order(order)
        assert "triggerPrice" not in wire
        assert "decreaseOnly" not in wire


class TestRequestBodies:
    def test_submit_request_omits_unset_optionals(self):
        body = SubmitOrderRequest(order={"salt": "1"}).to_payload()
        assert body == {"order": {"salt": "1"}, "fillOrKill": False, "postOnly": False}

    def test_submit_request_serializes_trigger_price(self):
        body = SubmitOrderRequest(
            order={}, trigger_price=10**30, client_id="c"
        ).to_payload()
        assert body["triggerPrice"] == "1" + "0" * 30
        assert body["clientId"] == "c"

    def test_replace_request(self):
        body = ReplaceOrderRequest(
            order={}, cancel_id="0xa", cancel_signature="0xb"
        ).to_payload()
        assert body == {
            "order": {},
            "fillOrKill": False,
            "postOnly": False,
            "cancelId": "0xa",
            "cancelSignature": "0xb",
        }


class TestQueryRecords:
    def test_only_provided_filters_are_emitted(self):
        assert OrderQueryV2(limit=5).to_query_params() == {"limit": 5}

    def test_values_rendered_for_the_wire(self):
        params = OrderQueryV2(
            account_number="12",
            starting_before=datetime(2021, 6, 1, tzinfo=timezone.utc),
            order_type=["LIMIT"],
        ).to_query_params()
        assert params == {
            "accountNumber": "12",
            "startingBefore": "2021-06-01T00:00:00.000Z",
            "orderType": ["LIMIT"],
        }

    def test_fill_query_has_no_status(self):
        assert "status" not in FillQueryV2.model_fields
