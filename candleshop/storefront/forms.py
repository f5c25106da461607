# candleshop/storefront/forms.py
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional, Sequence, Type

from pydantic import BaseModel, EmailStr, Field, StringConstraints, create_model
from pydantic import ValidationError as PydanticValidationError

from candleshop.storefront.errors import ValidationError

FIELD_KINDS = ("text", "textarea", "email", "password", "int", "decimal", "bool", "choice", "ref")


@dataclass
class FieldSpec:
    """One input of an admin or checkout form."""

    name: str
    label: str
    kind: str = "text"
    required: bool = True
    default: Any = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    ge: Optional[float] = None
    le: Optional[float] = None
    choices: Sequence[str] = ()
    # Shown instead of the generic validator message
    message: Optional[str] = None

    def __post_init__(self):
        if self.kind not in FIELD_KINDS:
            raise ValueError(f"Unknown field kind: {self.kind}")
        if self.kind == "choice" and not self.choices:
            raise ValueError(f"Choice field {self.name} needs choices")

    def annotation(self):
        if self.kind in ("text", "textarea", "password"):
            min_length = self.min_length
            if min_length is None and self.required:
                min_length = 1
            return Annotated[str, StringConstraints(
                strip_whitespace=True, min_length=min_length,
                max_length=self.max_length, pattern=self.pattern,
            )]
        if self.kind == "email":
            return EmailStr
        if self.kind in ("int", "ref"):
            return Annotated[int, Field(ge=self.ge, le=self.le)]
        if self.kind == "decimal":
            return Annotated[Decimal, Field(ge=self.ge, le=self.le, decimal_places=2)]
        if self.kind == "bool":
            return bool
        # choice
        return Literal[tuple(self.choices)]


@dataclass
class FormSchema:
    """Declarative form compiled into a pydantic model on first use."""

    name: str
    fields: List[FieldSpec]
    _model: Optional[Type[BaseModel]] = field(default=None, init=False, repr=False)

    @property
    def model(self) -> Type[BaseModel]:
        if self._model is None:
            definitions = {}
            for spec in self.fields:
                if spec.required and spec.default is None:
                    definitions[spec.name] = (spec.annotation(), ...)
                elif spec.required:
                    definitions[spec.name] = (spec.annotation(), spec.default)
                else:
                    definitions[spec.name] = (Optional[spec.annotation()], spec.default)
            self._model = create_model(self.name, **definitions)
        return self._model

    def field_names(self) -> List[str]:
        return [spec.name for spec in self.fields]

    def initial(self, record: Optional[Dict] = None) -> Dict[str, Any]:
        """Form values for editing ``record``, or defaults for a new one."""
        record = record or {}
        return {spec.name: record.get(spec.name, spec.default) for spec in self.fields}

    def _prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        values = {}
        for spec in self.fields:
            if spec.name not in data:
                continue
            value = data[spec.name]
            # Empty inputs of optional fields mean "not set"
            if isinstance(value, str) and value.strip() == "" and not spec.required:
                value = spec.default
            values[spec.name] = value
        return values

    def errors(self, data: Dict[str, Any]) -> Dict[str, str]:
        try:
            self.model.model_validate(self._prepare(data))
        except PydanticValidationError as e:
            return self._field_errors(e)
        return {}

    def validate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Returns JSON-ready values or raises ValidationError with per-field messages."""
        try:
            instance = self.model.model_validate(self._prepare(data))
        except PydanticValidationError as e:
            errors = self._field_errors(e)
            raise ValidationError("Please correct the highlighted fields", errors) from e
        return instance.model_dump(mode="json")

    def _field_errors(self, exc: PydanticValidationError) -> Dict[str, str]:
        specs = {spec.name: spec for spec in self.fields}
        errors = {}
        for err in exc.errors():
            name = str(err["loc"][0]) if err["loc"] else "__all__"
            if name in errors:
                continue
            spec = specs.get(name)
            errors[name] = spec.message if spec and spec.message else err["msg"]
        return errors


PAYMENT_METHOD_CHOICES = ("cash", "bank_transfer", "paypal", "credit_card")
PAGE_TYPES = ("about", "contact", "blog", "shipping-returns")

PRODUCT_FORM = FormSchema("ProductForm", [
    FieldSpec("name", "Name", message="Name is required"),
    FieldSpec("description", "Description", kind="textarea", required=False, default=""),
    FieldSpec("price", "Price", kind="decimal", ge=0, message="Price must be a non-negative amount"),
    FieldSpec("stock", "Stock", kind="int", ge=0, default=0, message="Stock must be zero or more"),
    FieldSpec("image_url", "Image URL", required=False),
    FieldSpec("category_id", "Category", kind="ref", required=False),
    FieldSpec("burn_time", "Burn time", required=False),
    FieldSpec("featured", "Featured", kind="bool", default=False),
    FieldSpec("has_color_options", "Offer color options", kind="bool", default=True),
])

CATEGORY_FORM = FormSchema("CategoryForm", [
    FieldSpec("name", "Name", message="Name is required"),
    FieldSpec("description", "Description", kind="textarea", required=False),
    FieldSpec("image_url", "Image URL", required=False),
])

SCENT_FORM = FormSchema("ScentForm", [
    FieldSpec("name", "Name", message="Name is required"),
    FieldSpec("description", "Description", kind="textarea", required=False),
    FieldSpec("active", "Active", kind="bool", default=True),
])

COLOR_FORM = FormSchema("ColorForm", [
    FieldSpec("name", "Name", message="Name is required"),
    FieldSpec("hex_value", "Hex value", pattern=r"^#[0-9A-Fa-f]{6}$",
              message="Use a hex color like #FFAA00"),
    FieldSpec("active", "Active", kind="bool", default=True),
])

USER_ADMIN_FORM = FormSchema("UserAdminForm", [
    FieldSpec("is_admin", "Administrator", kind="bool", default=False),
])

GENERAL_SETTINGS_FORM = FormSchema("GeneralSettingsForm", [
    FieldSpec("store_name", "Store name", min_length=3),
    FieldSpec("store_description", "Store description", kind="textarea", min_length=10),
    FieldSpec("store_owner", "Owner", min_length=2),
    FieldSpec("store_legal_name", "Legal name", min_length=3),
    FieldSpec("store_tax_id", "Tax ID", min_length=3),
])

CONTACT_SETTINGS_FORM = FormSchema("ContactSettingsForm", [
    FieldSpec("address", "Address", min_length=3),
    FieldSpec("city", "City", min_length=2),
    FieldSpec("postalCode", "Postal code", min_length=2),
    FieldSpec("phone", "Phone", min_length=5),
    FieldSpec("email", "E-mail", kind="email", message="Enter a valid e-mail address"),
    FieldSpec("workingHours", "Working hours", min_length=3),
])

SHIPPING_SETTINGS_FORM = FormSchema("ShippingSettingsForm", [
    FieldSpec("shippingCost", "Flat shipping rate", kind="decimal", ge=0,
              message="Shipping cost must be a non-negative number"),
    FieldSpec("freeShippingThreshold", "Free shipping from (0 disables)", kind="decimal", ge=0,
              message="Threshold must be a non-negative number"),
])

PAGE_FORM = FormSchema("PageForm", [
    FieldSpec("title", "Title"),
    FieldSpec("content", "Content", kind="textarea"),
])

CHECKOUT_FORM = FormSchema("CheckoutForm", [
    FieldSpec("payment_method", "Payment method", kind="choice", choices=PAYMENT_METHOD_CHOICES,
              message="Choose a payment method"),
    FieldSpec("shipping_address", "Address", min_length=3, message="Address must be at least 3 characters"),
    FieldSpec("shipping_city", "City", min_length=2, message="City must be at least 2 characters"),
    FieldSpec("shipping_postal_code", "Postal code", min_length=2,
              message="Postal code must be at least 2 characters"),
    FieldSpec("shipping_country", "Country", min_length=2, message="Country must be at least 2 characters"),
    FieldSpec("customer_note", "Note for the shop", kind="textarea", required=False),
])

ORDER_STATUS_FORM = FormSchema("OrderStatusForm", [
    FieldSpec("status", "Status", kind="choice",
              choices=("pending", "processing", "shipped", "completed", "cancelled")),
])
