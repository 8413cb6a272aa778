"""REST client for the storefront API, as used by the shop front end."""

import json
from typing import List, Optional

import requests

from cart import CartStore
from logging_setup import get_logger
from storage import MemoryStorage

logger = get_logger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
FALLBACK_MESSAGE = "Something went wrong. Please try again."


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class StorefrontClient:
    """Thin wrapper over a requests-style session.

    The bearer token and the logged-in user live in ``storage`` so that they
    survive restarts the same way the cart does. A 401 from any call drops
    both.
    """

    def __init__(self, base_url: str, storage=None, session=None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.storage = storage if storage is not None else MemoryStorage()
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    # ---------------------------
    # Plumbing
    # ---------------------------

    @property
    def token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY)

    @property
    def user(self) -> Optional[dict]:
        raw = self.storage.get_item(USER_KEY)
        return json.loads(raw) if raw else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return (self.user or {}).get("role") == "admin"

    def _remember(self, payload: dict) -> dict:
        self.storage.set_item(TOKEN_KEY, payload["token"])
        self.storage.set_item(USER_KEY, json.dumps(payload["user"]))
        return payload["user"]

    def logout(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(USER_KEY)

    def request(self, method: str, path: str, **kwargs):
        headers = dict(kwargs.pop("headers", None) or {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        resp = self.session.request(method, f"{self.base_url}{path}", headers=headers, timeout=self.timeout, **kwargs)

        if resp.status_code == 401:
            self.logout()
        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            message = body.get("message") if isinstance(body, dict) else None
            errors = body.get("errors") if isinstance(body, dict) else None
            logger.debug("api_error", method=method, path=path, status_code=resp.status_code)
            raise ApiError(resp.status_code, message or FALLBACK_MESSAGE, errors)
        return resp.json()

    # ---------------------------
    # Auth
    # ---------------------------

    def register(self, name: str, email: str, password: str) -> dict:
        return self._remember(self.request("POST", "/auth/register", json={"name": name, "email": email, "password": password}))

    def login(self, email: str, password: str) -> dict:
        return self._remember(self.request("POST", "/auth/login", json={"email": email, "password": password}))

    def me(self) -> dict:
        return self.request("GET", "/auth/me")

    # ---------------------------
    # Catalog
    # ---------------------------

    def products(self, category: Optional[str] = None, search: Optional[str] = None, page: int = 1, limit: int = 20) -> dict:
        params = {"page": page, "limit": limit}
        if category:
            params["category"] = category
        if search:
            params["search"] = search
        return self.request("GET", "/products", params=params)

    def product(self, product_id: str) -> dict:
        return self.request("GET", f"/products/{product_id}")

    def products_by_category(self, category_name: str) -> dict:
        return self.request("GET", f"/products/category/{category_name}")

    def categories(self) -> list:
        return self.request("GET", "/categories")

    def category(self, category_id: str) -> dict:
        return self.request("GET", f"/categories/{category_id}")

    # ---------------------------
    # Orders
    # ---------------------------

    def place_order(self, items: List[dict], shipping_address: dict) -> dict:
        return self.request("POST", "/orders", json={"items": items, "shipping_address": shipping_address})

    def checkout(self, cart: CartStore, shipping_address: dict) -> dict:
        """Submit the cart as an order; the cart is cleared only when the order is accepted."""
        order = self.place_order(cart.to_order_items(), shipping_address)
        cart.clear()
        return order

    def my_orders(self) -> list:
        return self.request("GET", "/orders/my-orders")

    def order(self, order_id: str) -> dict:
        return self.request("GET", f"/orders/{order_id}")

    # ---------------------------
    # Admin
    # ---------------------------

    def create_product(self, data: dict) -> dict:
        return self.request("POST", "/admin/product", json=data)

    def update_product(self, product_id: str, data: dict) -> dict:
        return self.request("PUT", f"/admin/product/{product_id}", json=data)

    def delete_product(self, product_id: str) -> dict:
        return self.request("DELETE", f"/admin/product/{product_id}")

    def all_products(self) -> list:
        return self.request("GET", "/admin/products")

    def create_category(self, name: str, description: str = "") -> dict:
        return self.request("POST", "/admin/category", json={"name": name, "description": description})

    def update_category(self, category_id: str, data: dict) -> dict:
        return self.request("PUT", f"/admin/category/{category_id}", json=data)

    def delete_category(self, category_id: str) -> dict:
        return self.request("DELETE", f"/admin/category/{category_id}")

    def all_orders(self, status: Optional[str] = None, page: int = 1, limit: int = 50) -> dict:
        params = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        return self.request("GET", "/admin/orders", params=params)

    def update_order_status(self, order_id: str, status: str) -> dict:
        return self.request("PUT", f"/admin/order/{order_id}/status", json={"status": status})

    def stats(self) -> dict:
        return self.request("GET", "/admin/stats")

    # ---------------------------
    # Config
    # ---------------------------

    def site_name(self) -> str:
        return self.request("GET", "/config/site-name")["site_name"]

    def update_site_name(self, site_name: str) -> dict:
        return self.request("PUT", "/config/site-name", json={"site_name": site_name})

    def config(self) -> dict:
        return self.request("GET", "/config")

    def update_config(self, **fields) -> dict:
        return self.request("PUT", "/config", json=fields)
