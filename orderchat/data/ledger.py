"""Order ledger: confirmed orders with supersession and staff transitions.

At most one ``confirmed`` order exists per (project, phone). Recording a new
confirmation cancels the previous confirmed order and points the new row at it
through ``original_order_id``. Delivered orders are never touched.
"""
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from .models import Order, OrderStatus, utcnow
from ..app.config import Config
from ..app.pricing import PriceQuote, to_money
from ..utils.logger import get_logger
from ..utils.security import mask_phone

logger = get_logger(__name__)

STATUS_GROUPS = {
    "open": (OrderStatus.confirmed,),
    "all": (OrderStatus.confirmed, OrderStatus.delivered, OrderStatus.canceled),
}


class OrderNotFound(LookupError):
    pass


class InvalidTransition(ValueError):
    pass


@dataclass
class LedgerWrite:
    order: Order
    superseded: Optional[Order] = None
    duplicate: bool = False


def start_of_business_day(now: datetime = None, tz_name: str = None) -> datetime:
    """Local midnight of the business timezone as a naive UTC datetime."""
    now = now or utcnow()
    tz_name = tz_name or Config.BUSINESS_TIMEZONE
    tz = ZoneInfo(tz_name)
    local_now = now.replace(tzinfo=timezone.utc).astimezone(tz)
    local_midnight = datetime.combine(local_now.date(), time.min, tzinfo=tz)
    return local_midnight.astimezone(timezone.utc).replace(tzinfo=None)


class OrderLedger:

    def latest_confirmed(self, db: Session, project_id: str, phone: str, lock: bool = False) -> Optional[Order]:
        query = (
            db.query(Order)
            .filter(
                Order.project_id == project_id,
                Order.user_phone == phone,
                Order.status == OrderStatus.confirmed,
            )
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def _is_same_order(order: Order, name: Optional[str], pickup_time: Optional[str], quote: PriceQuote) -> bool:
        return (
            dict(order.items or {}) == quote.items()
            and (order.pickup_time or None) == (pickup_time or None)
            and (order.user_name or None) == (name or None)
            and to_money(order.total) == quote.total
        )

    def record_confirmed(
        self,
        db: Session,
        project_id: str,
        phone: str,
        pin_hash: str,
        quote: PriceQuote,
        name: Optional[str] = None,
        pickup_time: Optional[str] = None,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LedgerWrite:
        """Persist a confirmed order, superseding the live one for this phone.

        The read of the current confirmed order happens right before the
        writes and both are committed together. Callers serialize per phone
        through the order lock.
        """
        previous = self.latest_confirmed(db, project_id, phone, lock=True)

        if previous is not None and self._is_same_order(previous, name, pickup_time, quote):
            db.commit()
            logger.info("Duplicate confirmation for order #%s (%s); ledger unchanged",
                        previous.id, mask_phone(phone))
            return LedgerWrite(order=previous, duplicate=True)

        order = Order(
            project_id=project_id,
            user_phone=phone,
            user_name=name,
            pin_hash=pin_hash,
            pickup_time=pickup_time,
            items=quote.items(),
            price_breakdown=[line.as_dict() for line in quote.lines],
            total=quote.total,
            currency=quote.currency,
            status=OrderStatus.confirmed,
            client_ip=client_ip,
            user_agent=user_agent,
        )
        if previous is not None:
            previous.status = OrderStatus.canceled
            previous.canceled_at = utcnow()
            order.original_order_id = previous.id
        db.add(order)
        db.commit()
        db.refresh(order)

        if previous is not None:
            logger.info("Order #%s supersedes #%s for %s", order.id, previous.id, mask_phone(phone))
        else:
            logger.info("Order #%s confirmed for %s", order.id, mask_phone(phone))
        return LedgerWrite(order=order, superseded=previous)

    def get(self, db: Session, order_id: int, project_id: Optional[str] = None) -> Order:
        query = db.query(Order).filter(Order.id == order_id)
        if project_id:
            query = query.filter(Order.project_id == project_id)
        order = query.first()
        if order is None:
            raise OrderNotFound(f"order {order_id} not found")
        return order

    def mark_delivered(self, db: Session, order_id: int, project_id: Optional[str] = None) -> Order:
        order = self.get(db, order_id, project_id)
        if order.status == OrderStatus.delivered:
            return order
        if order.status == OrderStatus.canceled:
            raise InvalidTransition(f"order {order_id} is canceled and cannot be delivered")
        order.status = OrderStatus.delivered
        order.delivered_at = utcnow()
        db.commit()
        db.refresh(order)
        logger.info("Order #%s marked delivered", order.id)
        return order

    def mark_canceled(self, db: Session, order_id: int, project_id: Optional[str] = None) -> Order:
        order = self.get(db, order_id, project_id)
        if order.status == OrderStatus.canceled:
            return order
        if order.status == OrderStatus.delivered:
            raise InvalidTransition(f"order {order_id} is delivered and cannot be canceled")
        order.status = OrderStatus.canceled
        order.canceled_at = utcnow()
        db.commit()
        db.refresh(order)
        logger.info("Order #%s canceled by staff", order.id)
        return order

    def list_orders(
        self,
        db: Session,
        project_id: str,
        status: str = "open",
        date: str = "all",
        now: datetime = None,
    ) -> List[Order]:
        if status not in STATUS_GROUPS:
            raise ValueError(f"unknown status group {status!r}")
        if date not in ("today", "all"):
            raise ValueError(f"unknown date filter {date!r}")
        query = db.query(Order).filter(
            Order.project_id == project_id,
            Order.status.in_(STATUS_GROUPS[status]),
        )
        if date == "today":
            since = start_of_business_day(now)
            query = query.filter(Order.created_at >= since, Order.created_at < since + timedelta(days=1))
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def order_summary(order: Order) -> Dict[str, Any]:
    status = order.status.value if hasattr(order.status, "value") else order.status
    return {
        "id": order.id,
        "project_id": order.project_id,
        "user_name": order.user_name,
        "user_phone": order.user_phone,
        "pickup_time": order.pickup_time,
        "items": dict(order.items or {}),
        "price_breakdown": list(order.price_breakdown or []),
        "total": float(Decimal(order.total or 0)),
        "currency": order.currency,
        "status": status,
        "is_finalized": True,
        "is_delivered": status == OrderStatus.delivered.value,
        "is_cancelled": status == OrderStatus.canceled.value,
        "original_order_id": order.original_order_id,
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }
