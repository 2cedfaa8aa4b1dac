"""Validate the remote cart gateway against a fake backend."""

import asyncio
import json

import httpx
import pytest

from cartsync.core.exceptions import (
    ApiStatusError,
    AuthError,
    InputError,
    NetworkError,
    ValidationError,
)
from cartsync.core.models import RemoteCartEntry
from cartsync.services.cart_gateway import (
    CART_UNREACHABLE_MESSAGE,
    RemoteCartGateway,
    parse_cart_entries,
)


def run_gateway(make_api, backend, call):
    async def scenario():
        async with make_api(backend) as api:
            return await call(RemoteCartGateway(api))

    return asyncio.run(scenario())


class TestFetchCart:
    """``GET /cart`` handling."""

    def test_no_token_returns_none_without_request(self, backend, make_api):
        """An anonymous session has no cart, and that is not an error."""
        assert run_gateway(make_api, backend, lambda g: g.fetch_cart(None)) is None
        assert run_gateway(make_api, backend, lambda g: g.fetch_cart("")) is None
        assert backend.requests == []

    def test_fetch_with_token(self, backend, make_api, valid_token):
        backend.cart = [{"productId": "p1", "qty": 2}, {"productId": "p9", "qty": 1}]

        result = run_gateway(make_api, backend, lambda g: g.fetch_cart(valid_token))

        assert result == [
            RemoteCartEntry(productId="p1", qty=2),
            RemoteCartEntry(productId="p9", qty=1),
        ]
        request = backend.calls("GET", "/cart")[0]
        assert request.headers["Authorization"] == f"Bearer {valid_token}"

    def test_rejected_token_is_auth_error(self, backend, make_api):
        """A 4xx on cart fetch is an auth error carrying the server message."""
        with pytest.raises(AuthError) as exc_info:
            run_gateway(make_api, backend, lambda g: g.fetch_cart("expired"))

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Protected route, Oauth2 Bearer token not found"

    def test_bad_request_is_auth_error(self, backend, make_api, valid_token):
        backend.failures["GET /cart"] = (400, {"success": False, "message": "Invalid token"})

        with pytest.raises(AuthError) as exc_info:
            run_gateway(make_api, backend, lambda g: g.fetch_cart(valid_token))

        assert exc_info.value.message == "Invalid token"

    def test_transport_failure_is_network_error(self, backend, make_api, valid_token):
        backend.failures["GET /cart"] = httpx.ConnectError("Connection refused")

        with pytest.raises(NetworkError) as exc_info:
            run_gateway(make_api, backend, lambda g: g.fetch_cart(valid_token))

        assert exc_info.value.message == CART_UNREACHABLE_MESSAGE
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_server_error_is_network_error(self, backend, make_api, valid_token):
        """Fetch failures split only into auth and unreachable."""
        backend.failures["GET /cart"] = (500, {"success": False, "message": "Database down"})

        with pytest.raises(NetworkError) as exc_info:
            run_gateway(make_api, backend, lambda g: g.fetch_cart(valid_token))

        assert exc_info.value.message == CART_UNREACHABLE_MESSAGE
        assert isinstance(exc_info.value.cause, ApiStatusError)
        assert exc_info.value.cause.status_code == 500
        assert exc_info.value.details["server_message"] == "Database down"


class TestUpsertCartEntry:
    """``POST /cart`` handling."""

    def test_returns_complete_cart(self, backend, make_api, valid_token):
        """The server's full cart comes back, not just the changed line."""
        backend.cart = [{"productId": "p1", "qty": 1}, {"productId": "p2", "qty": 1}]

        result = run_gateway(
            make_api, backend, lambda g: g.upsert_cart_entry(valid_token, "p1", 5)
        )

        assert result == [
            RemoteCartEntry(productId="p1", qty=5),
            RemoteCartEntry(productId="p2", qty=1),
        ]
        request = backend.calls("POST", "/cart")[0]
        assert json.loads(request.content) == {"productId": "p1", "qty": 5}
        assert request.headers["Authorization"] == f"Bearer {valid_token}"

    def test_zero_quantity_removes_line(self, backend, make_api, valid_token):
        backend.cart = [{"productId": "p1", "qty": 1}, {"productId": "p2", "qty": 1}]

        result = run_gateway(
            make_api, backend, lambda g: g.upsert_cart_entry(valid_token, "p1", 0)
        )

        assert result == [RemoteCartEntry(productId="p2", qty=1)]

    def test_negative_quantity_rejected_locally(self, backend, make_api, valid_token):
        with pytest.raises(InputError):
            run_gateway(make_api, backend, lambda g: g.upsert_cart_entry(valid_token, "p1", -1))

        assert backend.requests == []

    def test_unknown_product_is_validation_error(self, backend, make_api, valid_token):
        """The server's message is surfaced verbatim."""
        with pytest.raises(ValidationError) as exc_info:
            run_gateway(make_api, backend, lambda g: g.upsert_cart_entry(valid_token, "p9", 1))

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Product doesn't exist"

    def test_rejected_token_is_auth_error(self, backend, make_api):
        with pytest.raises(AuthError):
            run_gateway(make_api, backend, lambda g: g.upsert_cart_entry("expired", "p1", 1))

    def test_transport_failure_is_network_error(self, backend, make_api, valid_token):
        backend.failures["POST /cart"] = httpx.ReadTimeout("timed out")

        with pytest.raises(NetworkError):
            run_gateway(make_api, backend, lambda g: g.upsert_cart_entry(valid_token, "p1", 1))


class TestParseCartEntries:
    """Normalisation of cart payloads."""

    def test_preserves_order(self):
        payload = [{"productId": "b", "qty": 1}, {"productId": "a", "qty": 2}]

        assert [e.product_id for e in parse_cart_entries(payload)] == ["b", "a"]

    def test_drops_zero_quantity_and_duplicates(self):
        """At most one positive entry per product survives."""
        payload = [
            {"productId": "p1", "qty": 2},
            {"productId": "p2", "qty": 0},
            {"productId": "p1", "qty": 7},
        ]

        assert parse_cart_entries(payload) == [RemoteCartEntry(productId="p1", qty=2)]

    @pytest.mark.parametrize(
        "payload",
        [
            {"productId": "p1", "qty": 1},
            [{"productId": "p1"}],
            [{"productId": "p1", "qty": -2}],
            ["p1"],
        ],
    )
    def test_malformed_payload_is_network_error(self, payload):
        with pytest.raises(NetworkError):
            parse_cart_entries(payload)
