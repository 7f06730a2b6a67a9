"""Pricing engine: authoritative per-line and total prices.

Everything here is a pure function of a product snapshot, the customer's
category tags and the time used for discount-window checks. Totals suggested by
the text-generation layer never reach this module.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from ..utils.logger import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
DISCOUNT_TYPE_ALIASES = {
    "percentage": "percentage",
    "percent": "percentage",
    "%": "percentage",
    "fixed": "fixed",
    "amount": "fixed",
}


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_discount_type(value) -> Optional[str]:
    if value is None:
        return None
    raw = getattr(value, "value", value)
    return DISCOUNT_TYPE_ALIASES.get(str(raw).strip().lower())


def _naive_utc(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class ProductSnapshot:
    """Immutable copy of the catalog fields pricing depends on."""
    sku: str
    base_price: Decimal
    currency: str = "EUR"
    names: Mapping[str, str] = field(default_factory=dict)
    is_active: bool = True
    is_discount_active: bool = False
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None
    discount_name: Optional[str] = None
    allowed_categories: FrozenSet[str] = frozenset()
    discount_starts_at: Optional[datetime] = None
    discount_ends_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, product) -> "ProductSnapshot":
        return cls(
            sku=product.sku,
            base_price=to_money(product.base_price),
            currency=product.currency or "EUR",
            names={
                "hr": product.name_hr or "",
                "de": product.name_de or "",
                "en": product.name_en or "",
            },
            is_active=bool(product.is_active),
            is_discount_active=bool(product.is_discount_active),
            discount_type=normalize_discount_type(product.discount_type),
            discount_value=to_money(product.discount_value) if product.discount_value is not None else None,
            discount_name=product.discount_name,
            allowed_categories=frozenset(product.allowed_categories or ()),
            discount_starts_at=product.discount_starts_at,
            discount_ends_at=product.discount_ends_at,
        )

    def display_name(self, lang: str) -> str:
        for key in (lang, "hr", "en", "de"):
            if self.names.get(key):
                return self.names[key]
        return self.sku


@dataclass(frozen=True)
class PriceLine:
    sku: str
    quantity: int
    unit_base_price: Decimal
    unit_final_price: Decimal
    line_total: Decimal
    discount_name: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "sku": self.sku,
            "quantity": self.quantity,
            "unit_base_price": str(self.unit_base_price),
            "unit_final_price": str(self.unit_final_price),
            "line_total": str(self.line_total),
            "discount_name": self.discount_name,
        }


@dataclass(frozen=True)
class PriceQuote:
    lines: Tuple[PriceLine, ...]
    total: Decimal
    currency: str
    skipped_skus: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def items(self) -> Dict[str, int]:
        return {line.sku: line.quantity for line in self.lines}


def discount_applies(product: ProductSnapshot, categories: Iterable[str], now: datetime) -> bool:
    """Active AND (open to everyone OR category overlap) AND inside the window, if any."""
    if not product.is_discount_active:
        return False
    if product.discount_type is None or product.discount_value is None:
        return False
    if product.allowed_categories and not (set(product.allowed_categories) & set(categories or ())):
        return False
    moment = _naive_utc(now)
    starts = _naive_utc(product.discount_starts_at)
    ends = _naive_utc(product.discount_ends_at)
    if starts is not None and moment < starts:
        return False
    if ends is not None and moment > ends:
        return False
    return True


def unit_price(product: ProductSnapshot, categories: Iterable[str], now: datetime) -> Tuple[Decimal, Optional[str]]:
    """Return (final unit price, applied discount name or None)."""
    base = to_money(product.base_price)
    if not discount_applies(product, categories, now):
        return base, None
    value = Decimal(product.discount_value)
    if product.discount_type == "percentage":
        final = base * (Decimal(1) - value / Decimal(100))
    else:
        final = base - value
    final = to_money(max(Decimal(0), final))
    return final, product.discount_name or product.discount_type


def price_items(
    items: Mapping[str, int],
    catalog: Iterable[ProductSnapshot],
    categories: Iterable[str],
    now: datetime,
    currency: str = "EUR",
) -> PriceQuote:
    """Price ``items`` (sku -> quantity) against the active catalog.

    SKUs missing from the active catalog are skipped and reported in
    ``skipped_skus``; non-positive quantities are ignored.
    """
    by_sku = {p.sku: p for p in catalog if p.is_active}
    categories = frozenset(categories or ())
    lines: List[PriceLine] = []
    skipped: List[str] = []
    total = Decimal("0.00")

    for sku in sorted(items):
        quantity = int(items[sku])
        if quantity <= 0:
            continue
        product = by_sku.get(sku)
        if product is None:
            skipped.append(sku)
            continue
        final, discount_name = unit_price(product, categories, now)
        line_total = to_money(final * quantity)
        lines.append(PriceLine(
            sku=sku,
            quantity=quantity,
            unit_base_price=to_money(product.base_price),
            unit_final_price=final,
            line_total=line_total,
            discount_name=discount_name,
        ))
        total += line_total
        currency = product.currency or currency

    if skipped:
        logger.warning("Catalog mismatch: SKUs not in active catalog were skipped: %s", ", ".join(skipped))

    return PriceQuote(lines=tuple(lines), total=to_money(total), currency=currency, skipped_skus=tuple(skipped))
