"""Pydantic models for the staff admin surface."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def split_categories(value) -> Optional[List[str]]:
    """Accept a list or a comma/semicolon separated string; trim and drop empties."""
    if value is None:
        return None
    if isinstance(value, str):
        parts = value.replace(";", ",").split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        parts = list(value)
    else:
        raise ValueError("categories must be a list or a delimited string")
    result = []
    for part in parts:
        part = str(part).strip()
        if part and part not in result:
            result.append(part)
    return result


_DISCOUNT_TYPES = {"percentage", "percent", "fixed", "amount"}


class ProductFields(BaseModel):
    name_hr: Optional[str] = None
    name_de: Optional[str] = None
    name_en: Optional[str] = None
    base_price: Optional[Decimal] = Field(default=None, ge=0)
    currency: Optional[str] = None
    is_active: Optional[bool] = None
    is_discount_active: Optional[bool] = None
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = Field(default=None, ge=0)
    discount_name: Optional[str] = None
    allowed_categories: Optional[List[str]] = None
    discount_starts_at: Optional[datetime] = None
    discount_ends_at: Optional[datetime] = None

    @field_validator("allowed_categories", mode="before")
    @classmethod
    def _categories(cls, value):
        return split_categories(value)

    @field_validator("discount_type", mode="before")
    @classmethod
    def _discount_type(cls, value):
        if value in (None, ""):
            return None
        value = str(value).strip().lower()
        if value not in _DISCOUNT_TYPES:
            raise ValueError("discount_type must be percentage or fixed")
        return value


class ProductIn(ProductFields):
    sku: str = Field(min_length=1)
    base_price: Decimal = Field(ge=0)

    @field_validator("sku")
    @classmethod
    def _sku(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("sku must not be blank")
        return value


class ProductUpdate(ProductFields):
    sku: Optional[str] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: str
    sku: str
    name_hr: Optional[str] = None
    name_de: Optional[str] = None
    name_en: Optional[str] = None
    base_price: float
    currency: str
    is_active: bool
    is_discount_active: bool
    discount_type: Optional[str] = None
    discount_value: Optional[float] = None
    discount_name: Optional[str] = None
    allowed_categories: List[str] = Field(default_factory=list)
    discount_starts_at: Optional[datetime] = None
    discount_ends_at: Optional[datetime] = None

    @field_validator("discount_type", mode="before")
    @classmethod
    def _enum_value(cls, value):
        return getattr(value, "value", value)


class CustomerIn(BaseModel):
    phone: Union[str, int]
    pin: Optional[Union[str, int]] = None
    name: Optional[str] = None
    categories: Optional[List[str]] = None

    @field_validator("categories", mode="before")
    @classmethod
    def _categories(cls, value):
        return split_categories(value)

    @field_validator("phone", "pin", mode="after")
    @classmethod
    def _text(cls, value):
        return str(value).strip() if value is not None else None


class CustomerUpdate(CustomerIn):
    phone: Optional[Union[str, int]] = None


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: str
    phone: str
    name: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    has_pin: bool = True
    created_at: Optional[datetime] = None


class OrdersResponse(BaseModel):
    orders: List[Dict[str, Any]] = Field(default_factory=list)
