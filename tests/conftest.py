"""Configure pytest fixtures for CartSync tests."""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from cartsync.core.config import ApiConfig, reset_settings
from cartsync.data.api_client import StorefrontApiClient

ENDPOINT = "http://testserver/api/v1"
VALID_TOKEN = "testtoken"

SAMPLE_PRODUCTS = [
    {
        "name": "iPhone XR",
        "category": "Phones",
        "cost": 100,
        "rating": 4,
        "image": "https://i.imgur.com/lulqWzW.jpg",
        "_id": "p1",
    },
    {
        "name": "Basketball",
        "category": "Sports",
        "cost": 50,
        "rating": 5,
        "image": "https://i.imgur.com/lulqWzW.jpg",
        "_id": "p2",
    },
    {
        "name": "Tan Leatherette Weekender Duffle",
        "category": "Fashion",
        "cost": 150,
        "rating": 4,
        "image": "https://crio-directory-profiles.s3.ap-south-1.amazonaws.com/duffle.png",
        "_id": "p3",
    },
]

Failure = Union[Exception, Tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


def redirect_loop(request: httpx.Request) -> httpx.Response:
    """Redirect back to the requested URL forever."""
    return httpx.Response(302, headers={"Location": str(request.url)})


def corrupt_gzip(request: httpx.Request) -> httpx.Response:
    """Claim a gzip body that does not decompress."""
    return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")


class FakeBackend:
    """In-memory storefront backend served through ``httpx.MockTransport``."""

    def __init__(
        self,
        products: Optional[List[Dict[str, Any]]] = None,
        cart: Optional[List[Dict[str, Any]]] = None,
    ):
        self.products = list(SAMPLE_PRODUCTS if products is None else products)
        self.cart = [dict(entry) for entry in cart or []]
        self.users = {"crio.do": "learnwithcrio"}
        self.balance = 5000
        self.requests: List[httpx.Request] = []
        # "METHOD /path" -> exception to raise, (status, json body) to return,
        # or a handler building the raw response
        self.failures: Dict[str, Failure] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and self._path(r) == path
        ]

    @staticmethod
    def _path(request: httpx.Request) -> str:
        path = request.url.path
        prefix = httpx.URL(ENDPOINT).path
        return path[len(prefix):] if path.startswith(prefix) else path

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = self._path(request)
        key = f"{request.method} {path}"

        failure = self.failures.get(key)
        if isinstance(failure, Exception):
            raise failure
        if callable(failure):
            return failure(request)
        if failure is not None:
            status, body = failure
            return httpx.Response(status, json=body)

        if key == "GET /products":
            return httpx.Response(200, json=self.products)
        if key == "GET /products/search":
            return self._search(request.url.params.get("value", ""))
        if key == "GET /cart":
            return self._authorized(request) or httpx.Response(200, json=self.cart)
        if key == "POST /cart":
            return self._authorized(request) or self._upsert(json.loads(request.content))
        if key == "POST /auth/login":
            return self._login(json.loads(request.content))
        if key == "POST /auth/register":
            return self._register(json.loads(request.content))
        return httpx.Response(404, json={"success": False, "message": "Not found"})

    def _authorized(self, request: httpx.Request) -> Optional[httpx.Response]:
        if request.headers.get("Authorization") != f"Bearer {VALID_TOKEN}":
            return httpx.Response(
                401,
                json={"success": False, "message": "Protected route, Oauth2 Bearer token not found"},
            )
        return None

    def _search(self, text: str) -> httpx.Response:
        text = text.lower()
        matches = [
            p for p in self.products if text in p["name"].lower() or text in p["category"].lower()
        ]
        if not matches:
            return httpx.Response(404, json=[])
        return httpx.Response(200, json=matches)

    def _upsert(self, body: Dict[str, Any]) -> httpx.Response:
        product_id, qty = body["productId"], body["qty"]
        if not any(p["_id"] == product_id for p in self.products):
            return httpx.Response(404, json={"success": False, "message": "Product doesn't exist"})

        for entry in self.cart:
            if entry["productId"] == product_id:
                entry["qty"] = qty
                break
        else:
            self.cart.append({"productId": product_id, "qty": qty})
        self.cart = [entry for entry in self.cart if entry["qty"] > 0]
        return httpx.Response(200, json=self.cart)

    def _login(self, body: Dict[str, Any]) -> httpx.Response:
        username = body.get("username")
        if username not in self.users:
            return httpx.Response(400, json={"success": False, "message": "Username does not exist"})
        if self.users[username] != body.get("password"):
            return httpx.Response(400, json={"success": False, "message": "Password is incorrect"})
        return httpx.Response(
            201,
            json={
                "success": True,
                "token": VALID_TOKEN,
                "username": username,
                "balance": self.balance,
            },
        )

    def _register(self, body: Dict[str, Any]) -> httpx.Response:
        if body["username"] in self.users:
            return httpx.Response(
                400, json={"success": False, "message": "Username is already taken"}
            )
        self.users[body["username"]] = body["password"]
        return httpx.Response(201, json={"success": True})


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api_config() -> ApiConfig:
    return ApiConfig(CARTSYNC_API_ENDPOINT=ENDPOINT, CARTSYNC_REQUEST_TIMEOUT=5)


@pytest.fixture
def make_api(api_config):
    """Factory for API clients talking to a fake backend; use inside a coroutine."""

    def _make(backend: FakeBackend) -> StorefrontApiClient:
        return StorefrontApiClient(api_config, transport=backend.transport)

    return _make


@pytest.fixture
def valid_token() -> str:
    return VALID_TOKEN


@pytest.fixture
def sample_products() -> List[Dict[str, Any]]:
    return [dict(p) for p in SAMPLE_PRODUCTS]


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Point global settings at the fake backend and a throwaway session file."""
    monkeypatch.setenv("CARTSYNC_API_ENDPOINT", ENDPOINT)
    monkeypatch.setenv("CARTSYNC_SEARCH_DEBOUNCE_MS", "0")
    monkeypatch.setenv("CARTSYNC_SESSION_PATH", str(tmp_path / "session.json"))
    reset_settings()
    yield
    reset_settings()
