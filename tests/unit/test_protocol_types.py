"""Unit tests for Request and Response protocol types."""

import pytest
from pydantic import ValidationError

from deriv_playground.protocol import Operation, Request, Response


class TestRequestCreation:
    """Request construction and validation."""

    def test_create_with_operation_enum(self):
        request = Request.create(Operation.WEBSITE_STATUS)

        assert request.op == "website_status"
        assert request.value == 1
        assert request.subscribe is False

    def test_create_with_string_op(self):
        request = Request.create("time", 1)

        assert request.to_wire() == {"time": 1}

    def test_ticks_factory_subscribes(self):
        assert Request.ticks("R_50").subscribe is True

    def test_subscribing_returns_copy(self):
        request = Request.ping()
        subscribing = request.subscribing()

        assert subscribing.subscribe is True
        assert request.subscribe is False

    def test_empty_op_rejected(self):
        with pytest.raises(ValidationError):
            Request(op="")

    def test_subscribe_as_primary_key_rejected(self):
        with pytest.raises(ValidationError):
            Request(op="subscribe")

    def test_extra_key_cannot_shadow_primary(self):
        with pytest.raises(ValidationError):
            Request(op="ticks", value="R_50", extra={"ticks": "R_100"})

    def test_extra_key_cannot_be_subscribe(self):
        with pytest.raises(ValidationError):
            Request(op="ticks", value="R_50", extra={"subscribe": 1})


class TestRequestFromWire:
    """Rebuilding requests from structured values."""

    def test_known_operation_wins_over_key_order(self):
        request = Request.from_wire({"product_type": "basic", "active_symbols": "brief"})

        assert request.op == "active_symbols"
        assert request.extra == {"product_type": "basic"}

    def test_unknown_operation_uses_first_key(self):
        request = Request.from_wire({"time": 1})

        assert request.op == "time"

    def test_subscribe_flag_read(self):
        request = Request.from_wire({"subscribe": 1, "ticks": "R_50"})

        assert request.op == "ticks"
        assert request.subscribe is True

    def test_no_primary_key(self):
        with pytest.raises(ValueError, match="no primary key"):
            Request.from_wire({"subscribe": 1})


class TestResponse:
    """Field lookups on server responses."""

    def test_subscription_id(self):
        response = Response(data={"subscription": {"id": "S1"}, "msg_type": "tick"})

        assert response.subscription_id == "S1"

    def test_missing_subscription(self):
        assert Response(data={"msg_type": "tick"}).subscription_id is None

    def test_malformed_subscription_field(self):
        assert Response(data={"subscription": "S1"}).subscription_id is None

    def test_error_message_with_code(self):
        response = Response(
            data={
                "error": {"code": "InvalidSymbol", "message": "Symbol XYZ is invalid."},
                "msg_type": "ticks",
            }
        )

        assert response.is_error()
        assert response.error_message == "InvalidSymbol: Symbol XYZ is invalid."

    def test_no_error(self):
        response = Response(data={"msg_type": "ping"})

        assert not response.is_error()
        assert response.error_message is None

    def test_echo_req_defaults_to_empty(self):
        assert Response(data={}).echo_req == {}

    def test_forget_ack_matches_id(self, forget_ack):
        response = Response(data=forget_ack("S1"))

        assert response.is_forget_ack("S1")
        assert not response.is_forget_ack("S2")
        assert response.is_forget_ack()

    def test_tick_is_not_forget_ack(self, tick_frame):
        assert not Response(data=tick_frame("S1")).is_forget_ack("S1")
