# candleshop/storefront/api.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from candleshop.config import settings
from candleshop.storefront.errors import (
    AuthError, ConflictError, NetworkError, NotFoundError, StorefrontError, ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def parse_timestamp(value):
    """Parses an ISO timestamp from the API; older Pythons do not accept a trailing Z."""
    if not isinstance(value, str):
        return value
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _detail(response: httpx.Response):
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return body.get("detail") or body.get("message") or body
    return body


def _field_errors(detail) -> Dict[str, str]:
    # FastAPI validation errors: [{"loc": ["body", "quantity"], "msg": "..."}]
    errors = {}
    if isinstance(detail, list):
        for err in detail:
            if isinstance(err, dict) and err.get("loc"):
                errors.setdefault(str(err["loc"][-1]), err.get("msg", "Invalid value"))
    return errors


def error_from_response(response: httpx.Response) -> StorefrontError:
    detail = _detail(response)
    field_errors = _field_errors(detail)
    if field_errors:
        message = "; ".join(f"{k}: {v}" for k, v in field_errors.items())
    else:
        message = str(detail)

    code = response.status_code
    if code in (400, 422):
        return ValidationError(message, field_errors, status_code=code)
    if code in (401, 403):
        return AuthError(message, status_code=code)
    if code == 404:
        return NotFoundError(message, status_code=code)
    if code == 409:
        return ConflictError(message, status_code=code)
    if code >= 500:
        return NetworkError(message, status_code=code)
    return StorefrontError(message, status_code=code)


class ShopApiClient:
    """Thin async wrapper over the REST API returning decoded JSON.

    Every failure is raised as a StorefrontError subclass so callers only
    deal with one error family.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            transport=transport,
            timeout=timeout,
        )
        self.token = token

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out", method, path)
            raise NetworkError(f"Request timed out: {e}") from e
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError(f"Could not reach the shop: {e}") from e

        if response.status_code >= 400:
            error = error_from_response(response)
            logger.debug("%s %s -> %s %s", method, path, response.status_code, error.message)
            raise error
        if response.status_code == 204 or not response.content:
            return None
        if response.headers.get("content-type", "").startswith("application/json"):
            return response.json()
        return response.content

    # ---- Auth ----
    async def login(self, username: str, password: str) -> str:
        data = await self.request("POST", "/api/login", json={"username": username, "password": password})
        self.token = data["access_token"]
        return self.token

    async def register(self, **fields) -> Dict:
        return await self.request("POST", "/api/register", json=fields)

    async def me(self) -> Dict:
        return await self.request("GET", "/api/user")

    # ---- Catalog ----
    async def list_products(self, **filters) -> List[Dict]:
        params = {k: v for k, v in filters.items() if v is not None}
        return await self.request("GET", "/api/products", params=params)

    async def list_featured_products(self) -> List[Dict]:
        return await self.request("GET", "/api/products/featured")

    async def get_product(self, product_id: int) -> Dict:
        return await self.request("GET", f"/api/products/{product_id}")

    async def list_product_scents(self, product_id: int) -> List[Dict]:
        return await self.request("GET", f"/api/products/{product_id}/scents")

    async def list_product_colors(self, product_id: int) -> List[Dict]:
        return await self.request("GET", f"/api/products/{product_id}/colors")

    async def list_categories(self) -> List[Dict]:
        return await self.request("GET", "/api/categories")

    # ---- Cart ----
    async def get_cart(self) -> Dict:
        return await self.request("GET", "/api/cart")

    async def add_cart_item(self, product_id: int, quantity: int,
                            scent_id: Optional[int] = None, color_id: Optional[int] = None) -> Dict:
        payload = {"product_id": product_id, "quantity": quantity, "scent_id": scent_id, "color_id": color_id}
        return await self.request("POST", "/api/cart", json=payload)

    async def update_cart_item(self, item_id: int, quantity: int) -> Dict:
        return await self.request("PUT", f"/api/cart/{item_id}", json={"quantity": quantity})

    async def remove_cart_item(self, item_id: int) -> None:
        await self.request("DELETE", f"/api/cart/{item_id}")

    async def clear_cart(self) -> None:
        await self.request("DELETE", "/api/cart")

    # ---- Orders ----
    async def create_order(self, payload: Dict) -> Dict:
        return await self.request("POST", "/api/orders", json=payload)

    async def get_order(self, order_id: int) -> Dict:
        return await self.request("GET", f"/api/orders/{order_id}")

    async def list_my_orders(self) -> List[Dict]:
        return await self.request("GET", "/api/orders/user")

    async def list_orders(self, status: Optional[str] = None) -> List[Dict]:
        params = {"status": status} if status else None
        return await self.request("GET", "/api/orders", params=params)

    # ---- Settings ----
    async def get_shipping_settings(self) -> Dict[str, str]:
        return await self.request("GET", "/api/settings/shipping")
