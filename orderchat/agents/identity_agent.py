"""Identity & confirmation gate.

Resolves (project, phone, pin, name) to a Customer. This is the only place
that decides whether a PIN is correct; the model merely forwards what the
customer typed.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..data.customer_store import CustomerStore, normalize_phone
from ..data.models import Customer
from ..utils.logger import get_logger
from ..utils.security import mask_phone

logger = get_logger(__name__)


class IdentityStatus(str, enum.Enum):
    ok = "ok"
    wrong_pin = "wrong_pin"
    no_phone = "no_phone"
    no_pin = "no_pin"


@dataclass
class IdentityResult:
    status: IdentityStatus
    phone: Optional[str] = None
    customer: Optional[Customer] = None
    created: bool = False

    @property
    def ok(self) -> bool:
        return self.status == IdentityStatus.ok


class IdentityGate:
    def __init__(self, customers: Optional[CustomerStore] = None):
        self.customers = customers or CustomerStore()

    def resolve(self, db: Session, project_id: str, phone, pin, name: Optional[str] = None) -> IdentityResult:
        """Check credentials; create the customer for a new phone.

        Writes are flushed, not committed: the caller commits them together
        with the order or rolls them back.
        """
        phone = normalize_phone(phone)
        if not phone:
            return IdentityResult(IdentityStatus.no_phone)
        pin = str(pin).strip() if pin is not None else ""
        if not pin:
            return IdentityResult(IdentityStatus.no_pin, phone=phone)
        name = (name or "").strip() or None

        customer = self.customers.find(db, project_id, phone)
        if customer is None:
            try:
                customer = self.customers.create(db, project_id, phone, pin, name)
                return IdentityResult(IdentityStatus.ok, phone=phone, customer=customer, created=True)
            except IntegrityError:
                # another request registered this phone first; verify against it
                db.rollback()
                customer = self.customers.find(db, project_id, phone)
                if customer is None:
                    raise

        if not self.customers.hasher.verify_pin(pin, customer.pin_hash):
            logger.info("Wrong PIN for %s in project %s", mask_phone(phone), project_id)
            return IdentityResult(IdentityStatus.wrong_pin, phone=phone)

        if name and name != customer.name:
            customer.name = name
            db.flush()
        return IdentityResult(IdentityStatus.ok, phone=phone, customer=customer)
