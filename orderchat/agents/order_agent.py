"""Order Agent: turns a confirmed order intent into a ledger entry.

The pipeline is strictly sequential: identity gate, then pricing, then the
ledger write. Nothing is committed unless every step succeeds; any rejection
or error rolls the session back.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .base_agent import BaseAgent
from .identity_agent import IdentityGate
from ..app.locking import OrderLockManager
from ..app.pricing import price_items, to_money
from ..data.customer_store import normalize_phone
from ..data.ledger import OrderLedger
from ..data.menu_store import CatalogStore
from ..data.models import utcnow
from ..schemas.io_models import AgentResult
from ..schemas.order_models import OrderIntent
from ..utils.logger import get_logger
from ..utils.security import mask_phone

logger = get_logger(__name__)

INTENT = "order_confirm"


class OrderAgent(BaseAgent):
    name = "order"

    def __init__(self, gate: IdentityGate = None, catalog: CatalogStore = None,
                 ledger: OrderLedger = None, locks: OrderLockManager = None):
        self.gate = gate or IdentityGate()
        self.catalog = catalog or CatalogStore()
        self.ledger = ledger or OrderLedger()
        self.locks = locks or OrderLockManager()

    def confirm(self, db: Session, project_id: str, intent: OrderIntent,
                client_ip: Optional[str] = None, user_agent: Optional[str] = None,
                now: Optional[datetime] = None) -> AgentResult:
        phone = normalize_phone(intent.phone)
        if not phone:
            return self._reject(INTENT, "no_phone")
        if not intent.pin:
            return self._reject(INTENT, "no_pin", {"phone": phone})

        with self.locks.hold(project_id, phone):
            try:
                return self._confirm_locked(db, project_id, phone, intent, client_ip, user_agent, now or utcnow())
            except Exception:
                db.rollback()
                logger.error("Order confirmation failed for %s in project %s", mask_phone(phone), project_id)
                raise

    def _confirm_locked(self, db: Session, project_id: str, phone: str, intent: OrderIntent,
                        client_ip: Optional[str], user_agent: Optional[str], now: datetime) -> AgentResult:
        identity = self.gate.resolve(db, project_id, phone, intent.pin, intent.name)
        if not identity.ok:
            db.rollback()
            return self._reject(INTENT, identity.status.value, {"phone": phone})

        missing = intent.missing_fields()
        if missing:
            db.rollback()
            return self._reject(INTENT, "incomplete", {"phone": phone, "missing": missing})

        customer = identity.customer
        quote = price_items(intent.items, self.catalog.snapshot(db, project_id), customer.categories or [], now)
        if quote.is_empty:
            db.rollback()
            return self._reject(INTENT, "unknown_items", {"phone": phone, "skipped_skus": list(quote.skipped_skus)})

        if intent.total is not None and to_money(intent.total) != quote.total:
            logger.info("Model suggested total %s, computed %s; keeping computed", intent.total, quote.total)

        write = self.ledger.record_confirmed(
            db,
            project_id,
            phone,
            customer.pin_hash,
            quote,
            name=intent.name or customer.name,
            pickup_time=intent.pickup_time,
            client_ip=client_ip,
            user_agent=user_agent,
        )
        order = write.order
        facts = {
            "phone": phone,
            "order_id": order.id,
            "total": str(to_money(order.total)),
            "currency": order.currency,
            "pickup_time": order.pickup_time,
            "previous_id": write.superseded.id if write.superseded is not None else None,
            "customer_created": identity.created,
            "skipped_skus": list(quote.skipped_skus),
        }
        return self._ok(INTENT, "duplicate" if write.duplicate else "confirmed", facts)
