"""Structured order intent emitted by the text-generation layer.

Everything here is lenient about *types* (numbers for phones and PINs, numeric
strings for quantities) because the payload is written by a language model.
Whether the required fields are present is decided later by the order agent.
"""
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderIntent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    phone: Optional[str] = None
    pin: Optional[str] = None
    name: Optional[str] = None
    pickup_time: Optional[str] = None
    items: Dict[str, int] = Field(default_factory=dict)
    total: Optional[float] = None  # advisory only

    @field_validator("phone", "pin", "name", "pickup_time", mode="before")
    @classmethod
    def _as_text(cls, value):
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            value = str(value)
        if not isinstance(value, str):
            raise ValueError("expected text")
        return value.strip() or None

    @field_validator("items", mode="before")
    @classmethod
    def _as_quantities(cls, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("items must be an object mapping SKU to quantity")
        cleaned = {}
        for sku, qty in value.items():
            sku = str(sku).strip()
            if not sku or qty is None or isinstance(qty, bool):
                continue
            if isinstance(qty, float):
                if not qty.is_integer():
                    raise ValueError(f"quantity for {sku} is not a whole number")
                qty = int(qty)
            elif isinstance(qty, str):
                qty = int(qty.strip())
            elif not isinstance(qty, int):
                raise ValueError(f"quantity for {sku} is not a number")
            if qty > 0:
                cleaned[sku] = cleaned.get(sku, 0) + qty
        return cleaned

    @field_validator("total", mode="before")
    @classmethod
    def _loose_total(cls, value):
        try:
            return float(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def missing_fields(self):
        """Order fields (besides the credentials) that are still empty."""
        missing = []
        if not self.items:
            missing.append("items")
        if not self.pickup_time:
            missing.append("pickup_time")
        return missing
