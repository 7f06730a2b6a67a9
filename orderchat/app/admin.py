"""Staff admin surface: orders, products and customers per project."""
import secrets
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import Config
from .tenant import resolve_project_id
from ..data.customer_store import CustomerStore
from ..data.database import get_db
from ..data.ledger import InvalidTransition, OrderLedger, OrderNotFound, order_summary
from ..data.menu_store import CatalogStore
from ..schemas.admin_models import (
    CustomerIn, CustomerOut, CustomerUpdate, OrdersResponse, ProductIn, ProductOut, ProductUpdate,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

security = HTTPBasic(auto_error=False)

ledger = OrderLedger()
catalog_store = CatalogStore()
customer_store = CustomerStore()


def require_admin(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    """HTTP Basic check against ADMIN_USER / ADMIN_PASSWORD."""
    if not Config.ADMIN_PASSWORD:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Admin access is not configured")
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )
    user_ok = secrets.compare_digest(credentials.username.encode("utf-8"), Config.ADMIN_USER.encode("utf-8"))
    pass_ok = secrets.compare_digest(credentials.password.encode("utf-8"), Config.ADMIN_PASSWORD.encode("utf-8"))
    if not (user_ok and pass_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# --- orders ---

@router.get("/orders", response_model=OrdersResponse)
def list_orders(
    project: str = Query(None),
    status_group: str = Query("open", alias="status", pattern="^(open|all)$"),
    date: str = Query("all", pattern="^(today|all)$"),
    db: Session = Depends(get_db),
):
    orders = ledger.list_orders(db, resolve_project_id(project), status=status_group, date=date)
    return OrdersResponse(orders=[order_summary(o) for o in orders])


def _transition(fn, db: Session, order_id: int, project: str):
    try:
        order = fn(db, order_id, project_id=project or None)
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return order_summary(order)


@router.post("/orders/{order_id}/delivered")
def mark_delivered(order_id: int, project: str = Query(None), db: Session = Depends(get_db)):
    return _transition(ledger.mark_delivered, db, order_id, project)


@router.post("/orders/{order_id}/cancel")
def mark_canceled(order_id: int, project: str = Query(None), db: Session = Depends(get_db)):
    return _transition(ledger.mark_canceled, db, order_id, project)


# --- products ---

@router.get("/products", response_model=List[ProductOut])
def list_products(project: str = Query(None), db: Session = Depends(get_db)):
    return catalog_store.list_products(db, resolve_project_id(project))


@router.post("/products", response_model=ProductOut)
def upsert_product(payload: ProductIn, project: str = Query(None), db: Session = Depends(get_db)):
    return catalog_store.upsert_product(db, resolve_project_id(project), payload.model_dump(exclude_unset=True))


def _product_or_404(db: Session, project: str, product_id: int):
    product = catalog_store.get_product(db, resolve_project_id(project), product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, project: str = Query(None),
                   db: Session = Depends(get_db)):
    product = _product_or_404(db, project, product_id)
    try:
        return catalog_store.update_product(db, product, payload.model_dump(exclude_unset=True))
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Another product already uses this SKU")


@router.delete("/products/{product_id}")
def delete_product(product_id: int, project: str = Query(None), db: Session = Depends(get_db)):
    product = _product_or_404(db, project, product_id)
    deleted = catalog_store.delete_product(db, product)
    return {"id": product_id, "deleted": deleted, "deactivated": not deleted}


# --- customers ---

@router.get("/customers", response_model=List[CustomerOut])
def list_customers(project: str = Query(None), db: Session = Depends(get_db)):
    return customer_store.list_customers(db, resolve_project_id(project))


@router.post("/customers", response_model=CustomerOut)
def upsert_customer(payload: CustomerIn, project: str = Query(None), db: Session = Depends(get_db)):
    try:
        return customer_store.upsert_customer(db, resolve_project_id(project), payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _customer_or_404(db: Session, project: str, customer_id: int):
    customer = customer_store.get_customer(db, resolve_project_id(project), customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.put("/customers/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: int, payload: CustomerUpdate, project: str = Query(None),
                    db: Session = Depends(get_db)):
    customer = _customer_or_404(db, project, customer_id)
    try:
        return customer_store.update_customer(db, customer, payload.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Another customer already uses this phone")


@router.delete("/customers/{customer_id}")
def delete_customer(customer_id: int, project: str = Query(None), db: Session = Depends(get_db)):
    customer = _customer_or_404(db, project, customer_id)
    customer_store.delete_customer(db, customer)
    return {"id": customer_id, "deleted": True}
