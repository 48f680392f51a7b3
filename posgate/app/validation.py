from __future__ import annotations

import math
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, StrictBool, StringConstraints, TypeAdapter, ValidationError

from .errors import ValidationFailed


def _to_lower_str(v):
    if v is None:
        return v
    return str(v).strip().lower()


# Canonical values mirror the `profiles.role` and return-type columns in the database.
Role = Annotated[Literal["admin", "manager", "cashier"], BeforeValidator(_to_lower_str)]
ReturnType = Annotated[Literal["customer", "supplier"], BeforeValidator(_to_lower_str)]

ProductRef = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_return_type_adapter = TypeAdapter(ReturnType)
_role_adapter = TypeAdapter(Role)
_flag_adapter = TypeAdapter(StrictBool)


def _finite_number(v: Any) -> Optional[float]:
    # bool is an int subclass; `true` is never a quantity or a price.
    if isinstance(v, bool) or v is None:
        return None
    if isinstance(v, (int, float)):
        num = float(v)
    elif isinstance(v, str) and v.strip():
        try:
            num = float(v.strip())
        except ValueError:
            return None
    else:
        return None
    return num if math.isfinite(num) else None


class LineItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_id: ProductRef
    quantity: float

    @classmethod
    def check(cls, raw: Any, *, signed: bool = False) -> bool:
        if not isinstance(raw, dict):
            return False
        try:
            item = cls.model_validate(raw)
        except ValidationError:
            return False
        if not math.isfinite(item.quantity) or isinstance(raw.get("quantity"), bool):
            return False
        return item.quantity != 0 if signed else item.quantity > 0


def require_text(payload: dict, field: str, message: str) -> str:
    value = payload.get(field)
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationFailed(message)
    return text


def require_name(payload: dict) -> str:
    return require_text(payload, "name", "Name is required.")


def require_ref(payload: dict, field: str, message: str) -> str:
    value = payload.get(field)
    if isinstance(value, bool) or value is None:
        raise ValidationFailed(message)
    if isinstance(value, int):
        return str(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(message)
    return value.strip()


def require_price(payload: dict) -> float | int:
    raw = payload.get("price")
    num = _finite_number(raw)
    if num is None:
        raise ValidationFailed("Price is required.")
    if isinstance(raw, (int, float)):
        return raw
    return num


def require_items(payload: dict, *, signed: bool = False) -> list:
    items = payload.get("items")
    if items is None:
        items = []
    if not isinstance(items, list) or not items:
        raise ValidationFailed("At least one item is required.")
    for raw in items:
        if not LineItem.check(raw, signed=signed):
            if signed:
                raise ValidationFailed("Each adjustment needs a product and a non-zero quantity.")
            raise ValidationFailed("Each item needs a product and a positive quantity.")
    return items


def parse_return_type(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationFailed("Return type is required.")
    try:
        return _return_type_adapter.validate_python(value)
    except ValidationError:
        raise ValidationFailed("Return type must be customer or supplier.")


def optional_str(payload: dict, field: str) -> Optional[str]:
    value = payload.get(field)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_role(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        return _role_adapter.validate_python(value)
    except ValidationError:
        return None


def optional_flag(payload: dict, field: str) -> bool:
    """Missing or null means false; anything but a JSON boolean is rejected."""
    value = payload.get(field)
    if value is None:
        return False
    try:
        return _flag_adapter.validate_python(value)
    except ValidationError:
        raise ValidationFailed(f"{field} must be true or false.")
