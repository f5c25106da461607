# candleshop/storefront/admin.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from candleshop.storefront.api import ShopApiClient
from candleshop.storefront.errors import NotFoundError, StorefrontError, ValidationError
from candleshop.storefront.forms import (
    CATEGORY_FORM, COLOR_FORM, CONTACT_SETTINGS_FORM, GENERAL_SETTINGS_FORM, ORDER_STATUS_FORM,
    PAGE_FORM, PAGE_TYPES, PRODUCT_FORM, SCENT_FORM, SHIPPING_SETTINGS_FORM, USER_ADMIN_FORM,
    FormSchema,
)
from candleshop.storefront.notifications import Toaster

logger = logging.getLogger(__name__)


@dataclass
class ResourceSpec:
    name: str
    path: str
    form: FormSchema
    # Key holding the rows when the list endpoint is paginated
    list_key: Optional[str] = None
    # Appended to "{path}/{id}" for updates that have their own endpoint
    update_suffix: str = ""
    can_create: bool = True
    can_delete: bool = True


RESOURCES: Dict[str, ResourceSpec] = {
    "products": ResourceSpec("products", "/api/products", PRODUCT_FORM),
    "categories": ResourceSpec("categories", "/api/categories", CATEGORY_FORM),
    "scents": ResourceSpec("scents", "/api/scents", SCENT_FORM),
    "colors": ResourceSpec("colors", "/api/colors", COLOR_FORM),
    "users": ResourceSpec("users", "/api/users", USER_ADMIN_FORM, list_key="items",
                          update_suffix="/admin", can_create=False),
    "orders": ResourceSpec("orders", "/api/orders", ORDER_STATUS_FORM, update_suffix="/status",
                           can_create=False, can_delete=False),
}


class AdminPanel:
    """List / create / edit / delete screen for one REST resource.

    Failures never escape: they are posted to the toaster, and validation
    problems are kept in ``field_errors`` for the form to display.
    """

    def __init__(self, api: ShopApiClient, resource: Union[str, ResourceSpec],
                 toaster: Optional[Toaster] = None):
        self.api = api
        self.spec = RESOURCES[resource] if isinstance(resource, str) else resource
        self.toaster = toaster or Toaster()
        self.rows: List[Dict[str, Any]] = []
        self.field_errors: Dict[str, str] = {}
        self.last_error: Optional[StorefrontError] = None

    @property
    def form(self) -> FormSchema:
        return self.spec.form

    def _fail(self, error: StorefrontError):
        self.last_error = error
        if isinstance(error, ValidationError):
            self.field_errors = dict(error.field_errors)
        self.toaster.error(error)

    async def load(self, **params) -> List[Dict[str, Any]]:
        query = {k: v for k, v in params.items() if v is not None}
        try:
            data = await self.api.request("GET", self.spec.path, params=query or None)
        except StorefrontError as e:
            self._fail(e)
            return self.rows
        self.rows = data[self.spec.list_key] if self.spec.list_key else data
        return self.rows

    def edit_values(self, row: Optional[Dict] = None) -> Dict[str, Any]:
        self.field_errors = {}
        return self.form.initial(row)

    async def save(self, values: Dict[str, Any], item_id: Optional[int] = None) -> Optional[Dict]:
        """Creates a row (no ``item_id``) or updates one. Returns the saved row or None."""
        self.field_errors = {}
        self.last_error = None
        try:
            payload = self.form.validate(values)
            if item_id is None:
                if not self.spec.can_create:
                    raise ValidationError(f"New {self.spec.name} cannot be created here")
                saved = await self.api.request("POST", self.spec.path, json=payload)
            else:
                path = f"{self.spec.path}/{item_id}{self.spec.update_suffix}"
                saved = await self.api.request("PUT", path, json=payload)
        except StorefrontError as e:
            self._fail(e)
            return None

        self._upsert_row(saved)
        self.toaster.success("Saved", f"{self.spec.name.capitalize()} saved")
        return saved

    def _upsert_row(self, saved: Dict):
        for i, row in enumerate(self.rows):
            if row.get("id") == saved.get("id"):
                self.rows[i] = saved
                return
        self.rows.append(saved)

    async def delete(self, item_id: int) -> bool:
        if not self.spec.can_delete:
            self._fail(ValidationError(f"{self.spec.name.capitalize()} cannot be deleted"))
            return False
        try:
            await self.api.request("DELETE", f"{self.spec.path}/{item_id}")
        except NotFoundError:
            # Already gone
            logger.info("%s %s was already deleted", self.spec.name, item_id)
        except StorefrontError as e:
            self._fail(e)
            return False
        self.rows = [row for row in self.rows if row.get("id") != item_id]
        self.toaster.success("Deleted", f"{self.spec.name.capitalize()} deleted")
        return True


# Forms that edit one document instead of a list of rows
SINGLE_FORMS: Dict[str, tuple] = {
    "general": ("/api/settings/general", GENERAL_SETTINGS_FORM),
    "contact": ("/api/settings/contact", CONTACT_SETTINGS_FORM),
    "shipping": ("/api/settings/shipping", SHIPPING_SETTINGS_FORM),
}
SINGLE_FORMS.update({f"page:{t}": (f"/api/pages/{t}", PAGE_FORM) for t in PAGE_TYPES})


class SettingsPanel:
    """Load-and-save form for a settings group or a content page."""

    def __init__(self, api: ShopApiClient, name: str, toaster: Optional[Toaster] = None):
        self.api = api
        self.path, self.form = SINGLE_FORMS[name]
        self.toaster = toaster or Toaster()
        self.values: Dict[str, Any] = {}
        self.field_errors: Dict[str, str] = {}

    async def load(self) -> Dict[str, Any]:
        try:
            data = await self.api.request("GET", self.path)
        except NotFoundError:
            # Page not written yet; start from an empty form
            data = {}
        except StorefrontError as e:
            self.toaster.error(e)
            data = {}
        self.values = self.form.initial(data)
        return self.values

    async def save(self, values: Dict[str, Any]) -> bool:
        self.field_errors = {}
        try:
            payload = self.form.validate(values)
            # Settings are stored as strings
            if self.path.startswith("/api/settings"):
                payload = {k: "" if v is None else str(v) for k, v in payload.items()}
            saved = await self.api.request("POST", self.path, json=payload)
        except StorefrontError as e:
            if isinstance(e, ValidationError):
                self.field_errors = dict(e.field_errors)
            self.toaster.error(e)
            return False
        self.values = self.form.initial(saved)
        self.toaster.success("Saved", "Changes saved")
        return True
