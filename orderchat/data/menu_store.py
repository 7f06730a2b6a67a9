"""Catalog store: per-project products with a built-in fallback catalog.

Projects that have no product rows yet are served from ``DEFAULT_CATALOGS``
so a freshly deployed tenant can take orders before staff edit the catalog.
"""
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from .models import Order, Product
from ..app.pricing import ProductSnapshot, normalize_discount_type
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CATALOGS: Dict[str, List[Dict[str, Any]]] = {
    "burek01": [
        {
            "sku": "burek_sir",
            "name_hr": "Burek sa sirom",
            "name_de": "Burek mit Käse",
            "name_en": "Cheese burek",
            "base_price": Decimal("5.00"),
        },
        {
            "sku": "burek_meso",
            "name_hr": "Burek s mesom",
            "name_de": "Burek mit Fleisch",
            "name_en": "Meat burek",
            "base_price": Decimal("5.00"),
        },
        {
            "sku": "burek_krumpir",
            "name_hr": "Burek s krumpirom",
            "name_de": "Burek mit Kartoffeln",
            "name_en": "Potato burek",
            "base_price": Decimal("4.50"),
        },
    ],
}

PRODUCT_FIELDS = (
    "sku", "name_hr", "name_de", "name_en", "base_price", "currency", "is_active",
    "is_discount_active", "discount_type", "discount_value", "discount_name",
    "allowed_categories", "discount_starts_at", "discount_ends_at",
)


def _snapshot_from_dict(row: Mapping[str, Any]) -> ProductSnapshot:
    return ProductSnapshot(
        sku=row["sku"],
        base_price=Decimal(str(row.get("base_price", 0))),
        currency=row.get("currency", "EUR"),
        names={k: row.get(f"name_{k}") or "" for k in ("hr", "de", "en")},
        is_active=row.get("is_active", True),
        is_discount_active=row.get("is_discount_active", False),
        discount_type=normalize_discount_type(row.get("discount_type")),
        discount_value=row.get("discount_value"),
        discount_name=row.get("discount_name"),
        allowed_categories=frozenset(row.get("allowed_categories") or ()),
    )


class CatalogStore:
    def __init__(self, fallback: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.fallback = DEFAULT_CATALOGS if fallback is None else fallback

    def snapshot(self, db: Session, project_id: str, active_only: bool = True) -> List[ProductSnapshot]:
        """Products of a project as pricing snapshots, fallback catalog when empty."""
        rows = db.query(Product).filter(Product.project_id == project_id).order_by(Product.sku).all()
        if rows:
            snaps = [ProductSnapshot.from_model(p) for p in rows]
        else:
            snaps = [_snapshot_from_dict(row) for row in self.fallback.get(project_id, [])]
            if snaps:
                logger.info("Project %s has no products stored; serving fallback catalog", project_id)
        if active_only:
            snaps = [p for p in snaps if p.is_active]
        return snaps

    # --- admin CRUD ---

    def list_products(self, db: Session, project_id: str) -> List[Product]:
        return db.query(Product).filter(Product.project_id == project_id).order_by(Product.id).all()

    def get_product(self, db: Session, project_id: str, product_id: int) -> Optional[Product]:
        return (
            db.query(Product)
            .filter(Product.project_id == project_id, Product.id == product_id)
            .first()
        )

    def upsert_product(self, db: Session, project_id: str, data: Mapping[str, Any]) -> Product:
        """Create or update by natural key (project, sku)."""
        product = (
            db.query(Product)
            .filter(Product.project_id == project_id, Product.sku == data["sku"])
            .first()
        )
        if product is None:
            product = Product(project_id=project_id, sku=data["sku"], allowed_categories=[])
            db.add(product)
            logger.info("Creating product %s for project %s", data["sku"], project_id)
        self._apply(product, data)
        db.commit()
        db.refresh(product)
        return product

    def update_product(self, db: Session, product: Product, data: Mapping[str, Any]) -> Product:
        self._apply(product, data)
        db.commit()
        db.refresh(product)
        return product

    def delete_product(self, db: Session, product: Product) -> bool:
        """Hard-delete unless historical orders reference the SKU.

        Returns True when the row was deleted, False when it was only
        deactivated.
        """
        referenced = any(
            product.sku in (items or {})
            for (items,) in db.query(Order.items).filter(Order.project_id == product.project_id)
        )
        if referenced:
            product.is_active = False
            db.commit()
            logger.info("Product %s is referenced by orders; deactivated instead of deleted", product.sku)
            return False
        db.delete(product)
        db.commit()
        return True

    @staticmethod
    def _apply(product: Product, data: Mapping[str, Any]):
        for key in PRODUCT_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if key == "discount_type":
                value = normalize_discount_type(value)
            if key == "allowed_categories":
                value = list(value or [])
            setattr(product, key, value)
