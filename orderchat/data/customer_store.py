"""Customer identity store: one row per (project, phone)."""
import re
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from .models import Customer
from ..utils.logger import get_logger
from ..utils.security import PinHasher, mask_phone

logger = get_logger(__name__)


def normalize_phone(phone) -> Optional[str]:
    """Digits only, keeping a leading ``+``; ``00`` international prefix becomes ``+``."""
    if phone is None:
        return None
    raw = str(phone).strip()
    digits = re.sub(r"\D", "", raw)
    if not digits:
        return None
    if raw.startswith("+"):
        return "+" + digits
    if digits.startswith("00") and len(digits) > 2:
        return "+" + digits[2:]
    return digits


def clean_categories(values: Optional[Iterable[str]]) -> List[str]:
    seen = []
    for value in values or ():
        value = str(value).strip()
        if value and value not in seen:
            seen.append(value)
    return seen


class CustomerStore:
    def __init__(self, hasher: Optional[PinHasher] = None):
        self.hasher = hasher or PinHasher()

    def find(self, db: Session, project_id: str, phone: str) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.project_id == project_id, Customer.phone == phone)
            .first()
        )

    def create(self, db: Session, project_id: str, phone: str, pin: str,
               name: Optional[str] = None, categories: Optional[Iterable[str]] = None) -> Customer:
        """Add a customer to the session and flush; the caller owns the commit."""
        customer = Customer(
            project_id=project_id,
            phone=phone,
            pin_hash=self.hasher.hash_pin(pin),
            name=name,
            categories=clean_categories(categories),
        )
        db.add(customer)
        db.flush()
        logger.info("Created customer %s for project %s", mask_phone(phone), project_id)
        return customer

    # --- admin CRUD ---

    def list_customers(self, db: Session, project_id: str) -> List[Customer]:
        return db.query(Customer).filter(Customer.project_id == project_id).order_by(Customer.id).all()

    def get_customer(self, db: Session, project_id: str, customer_id: int) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.project_id == project_id, Customer.id == customer_id)
            .first()
        )

    def upsert_customer(self, db: Session, project_id: str, data: Mapping[str, Any]) -> Customer:
        """Create or update by natural key (project, phone).

        Raises ValueError when a new customer is submitted without a PIN.
        """
        phone = normalize_phone(data.get("phone"))
        if not phone:
            raise ValueError("phone is required")
        customer = self.find(db, project_id, phone)
        if customer is None:
            if not data.get("pin"):
                raise ValueError("pin is required for a new customer")
            customer = self.create(db, project_id, phone, data["pin"], data.get("name"), data.get("categories"))
        else:
            self._apply(customer, data)
        db.commit()
        db.refresh(customer)
        return customer

    def update_customer(self, db: Session, customer: Customer, data: Mapping[str, Any]) -> Customer:
        if "phone" in data and data["phone"] is not None:
            phone = normalize_phone(data["phone"])
            if not phone:
                raise ValueError("phone must contain digits")
            customer.phone = phone
        self._apply(customer, data)
        db.commit()
        db.refresh(customer)
        return customer

    def delete_customer(self, db: Session, customer: Customer):
        db.delete(customer)
        db.commit()

    def _apply(self, customer: Customer, data: Mapping[str, Any]):
        if data.get("name") is not None:
            customer.name = data["name"]
        if data.get("categories") is not None:
            customer.categories = clean_categories(data["categories"])
        if data.get("pin"):
            # explicit admin override; the chat flow never changes a PIN
            customer.pin_hash = self.hasher.hash_pin(str(data["pin"]))
            logger.info("PIN replaced by admin for customer %s", mask_phone(customer.phone))
