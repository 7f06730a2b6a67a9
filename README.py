"""
ORDERCHAT: System Documentation
================================

Module-style README for the chat ordering backend. It can be imported by
tools that want to surface sections, or run directly to print the outline.

How to use this file
--------------------
- View in an editor for structured reading.
- Run `python README.py` to print the text.

Table of Contents
-----------------
1. System Overview
2. Architecture
3. Order Confirmation Flow
4. Pricing
5. Admin Surface
6. Configuration & Environment
7. Testing
8. Security & PII Handling
"""

from __future__ import annotations

import textwrap


def section(title: str, body: str) -> str:
    return f"\n{title}\n{'-' * len(title)}\n{body.strip()}\n"


SYSTEM_OVERVIEW = section(
    "1. System Overview",
    """
    ORDERCHAT lets customers of a small shop order products for pickup through
    a chat widget. A language model runs the conversation; the backend turns
    the model's structured order block into an authoritative, priced order.
    Several shops (projects) share one deployment, keyed by `projectId`.
    """,
)


ARCHITECTURE = section(
    "2. Architecture",
    """
    orderchat/app/
      - main.py: FastAPI app, `/config`, `/chat`, `/health`.
      - admin.py: `/admin/*` staff endpoints behind HTTP Basic auth.
      - controller.py: One chat turn: prompt, generate, parse, confirm.
      - prompt_builder.py: System instruction with catalog and order protocol.
      - generate.py: Text-completion client (OpenAI, Groq or Gemini over HTTP).
      - postprocess.py: Finds `FINAL_ORDER_JSON:` and strips it from the reply.
      - pricing.py: Decimal pricing with customer-category discounts.
      - locking.py: Per-phone order locks (Redis, in-process fallback).
      - locales.py / tenant.py: Customer-facing texts and per-project profiles.

    orderchat/agents/
      - identity_agent.py: Phone + PIN gate, creates customers on first order.
      - order_agent.py: Validates, prices and records a confirmed order.

    orderchat/data/
      - models.py/database.py: SQLAlchemy models and session management.
      - menu_store.py: Catalog CRUD and the built-in fallback catalog.
      - customer_store.py: Customer CRUD and phone normalization.
      - ledger.py: Confirmed orders, supersession, delivered/cancel.
      - populate_db.py: Seeds the fallback catalog into the products table.
    """,
)


ORDER_FLOW = section(
    "3. Order Confirmation Flow",
    """
    - The model collects phone, name, PIN, items and pickup time, then asks to confirm.
    - On confirmation it appends `FINAL_ORDER_JSON: {...}` to its reply.
    - The block is removed from the reply before it reaches the customer.
    - Phone and PIN are checked (a new phone registers the PIN).
    - Items are priced from the live catalog; the model's total is ignored.
    - A new confirmed order replaces (cancels) the previous confirmed order of
      the same phone; a delivered order is never replaced.
    - Any failure leaves no partial rows and returns a short localized message.
    """,
)


PRICING = section(
    "4. Pricing",
    """
    - Unit price = base price minus an active discount, never below 0.
    - A discount with `allowed_categories` applies only to customers in one of them.
    - Discount windows (`discount_starts_at` / `discount_ends_at`) are UTC.
    - Unknown or inactive SKUs are skipped and logged.
    """,
)


ADMIN = section(
    "5. Admin Surface",
    """
    - GET /admin/orders?project=&status=open|all&date=today|all
    - POST /admin/orders/{id}/delivered, POST /admin/orders/{id}/cancel
    - GET/POST /admin/products, PUT/DELETE /admin/products/{id}
    - GET/POST /admin/customers, PUT/DELETE /admin/customers/{id}
    - POST upserts by natural key: (project, sku) and (project, phone).
    """,
)


CONFIG_ENV = section(
    "6. Configuration & Environment",
    """
    - `.env` is loaded by python-dotenv; see `orderchat/app/config.py`.
    - LLM_PROVIDER=openai|groq|gemini plus the matching *_API_KEY.
    - DATABASE_URL (default: SQLite file under orderchat/data/).
    - ADMIN_USER / ADMIN_PASSWORD (admin is disabled without a password).
    - USE_REDIS_LOCKS, REDIS_HOST, REDIS_PORT for shared order locks.
    - DEFAULT_PROJECT_ID, DEFAULT_LANG, BUSINESS_TIMEZONE, LOG_LEVEL.
    """,
)


TESTING = section(
    "7. Testing",
    """
    - `pytest` from the repo root; tests use in-memory SQLite and a mocked model.
    - End-to-end turns go through `Controller.handle_chat` and the HTTP app.
    """,
)


SECURITY = section(
    "8. Security & PII Handling",
    """
    - PINs are stored as salted PBKDF2 hashes and never returned by the API.
    - Logs mask phone numbers and never include PINs or the raw order block.
    """,
)


def as_text() -> str:
    return "\n".join(
        [
            SYSTEM_OVERVIEW,
            ARCHITECTURE,
            ORDER_FLOW,
            PRICING,
            ADMIN,
            CONFIG_ENV,
            TESTING,
            SECURITY,
        ]
    )


def main() -> None:
    print(textwrap.dedent(as_text()))


if __name__ == "__main__":
    main()
