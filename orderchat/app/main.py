#!/usr/bin/env python3
"""
Main FastAPI application for the chat ordering backend.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .admin import router as admin_router
from .controller import Controller
from .locales import message
from .pricing import discount_applies, unit_price
from .tenant import get_project, normalize_lang
from ..data.database import create_tables, get_db
from ..data.menu_store import CatalogStore
from ..data.models import utcnow
from ..nlu.language import resolve_language
from ..schemas.io_models import CatalogItem, ChatRequest, ChatResponse, ConfigResponse
from ..utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Order Chat API",
    description="Chat ordering backend with order confirmation, pricing and staff admin",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(admin_router)

catalog_store = CatalogStore()


@lru_cache(maxsize=1)
def get_controller() -> Controller:
    """Single Controller per process, built on first use."""
    return Controller()


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@app.get("/config", response_model=ConfigResponse)
def get_config(project: str = Query(None), lang: str = Query(None), db: Session = Depends(get_db)):
    """Widget texts and the public catalog for one project."""
    profile = get_project(project)
    lang = normalize_lang(lang) or resolve_language(None)
    now = utcnow()
    products = []
    for p in catalog_store.snapshot(db, profile.project_id):
        # public price for a customer without categories
        final, _ = unit_price(p, (), now)
        running = discount_applies(p, p.allowed_categories, now)
        products.append(CatalogItem(
            sku=p.sku,
            name=p.display_name(lang),
            price=float(p.base_price),
            final_price=float(final),
            currency=p.currency,
            has_discount=running,
            discount_name=p.discount_name if running else None,
            discount_categories=sorted(p.allowed_categories) if running else [],
        ))
    return ConfigResponse(
        project_id=profile.project_id,
        lang=lang,
        title=profile.text("titles", lang),
        description=profile.text("descriptions", lang),
        welcome=profile.text("welcomes", lang),
        currency=profile.currency,
        products=products,
    )


@app.post("/chat", response_model=ChatResponse)
async def chat(payload: ChatRequest, request: Request, db: Session = Depends(get_db),
               controller: Controller = Depends(get_controller)):
    """
    Process one chat turn. The structured order block is consumed here and
    never returned to the caller.
    """
    messages = [m.model_dump() for m in payload.messages]
    try:
        result = await run_in_threadpool(
            controller.handle_chat,
            db,
            payload.projectId,
            payload.lang,
            messages,
            client_ip(request),
            request.headers.get("user-agent"),
        )
    except Exception:
        logger.exception("Unhandled error while processing chat turn for project %s", payload.projectId)
        lang = normalize_lang(payload.lang) or resolve_language(None)
        return JSONResponse(status_code=500, content={"reply": message(lang, "generic_error")})
    return ChatResponse(reply=result.reply)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
