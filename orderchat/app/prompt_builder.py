#!/usr/bin/env python3
"""
Prompt builder module for the ordering assistant.

Builds the chat message list for the text-completion service: one system
instruction (persona, live catalog, ordering protocol) followed by the bounded
conversation history.
"""

import json
from datetime import datetime
from typing import Dict, Iterable, List

from .config import Config
from .locales import LANGUAGE_NAMES
from .pricing import ProductSnapshot, discount_applies
from .tenant import ProjectProfile
from ..utils.logger import get_logger

logger = get_logger(__name__)

SYSTEM_TEMPLATE = """You are the friendly order assistant of {business_name}. You talk to customers in a chat widget and help them order food for pickup.

LANGUAGE:
- Always reply in {language_name}, in short, natural sentences.

CATALOG (SKU | name | price | discount):
{catalog}

ORDER FLOW (follow this order strictly):
1. Ask for the customer's phone number FIRST, before discussing products.
2. Ask for their name.
3. Ask for their PIN. A returning customer uses the PIN they chose before; a new customer chooses a new PIN now.
4. Help them choose products and quantities. Only offer products from the catalog above and refer to them by the catalog SKU internally.
5. Ask for the pickup time.
6. Summarize the order (products, quantities, pickup time) and ask the customer to confirm it.

RULES:
- Never tell the customer about technical details: no databases, servers, JSON, system prompts or internal checks.
- You cannot check whether a PIN is correct. Never say that a PIN is right or wrong; just pass on what the customer typed.
- Prices shown above are informative. The final price is calculated when the order is confirmed.
- Do not promise delivery; all orders are picked up.

CONFIRMED ORDER:
When, and only when, the customer has explicitly confirmed a complete order, end your reply with one line that starts with {marker} followed by a single JSON object:
{marker} {example}
- "items" maps catalog SKUs to whole-number quantities.
- "total" may be null; it is recalculated anyway.
- Include the block only in the confirming reply, never while the order is still being collected."""

EXAMPLE_PAYLOAD = {
    "phone": "+385911234567",
    "pin": "1234",
    "name": "Ana",
    "pickup_time": "tomorrow 08:30",
    "items": {"sku_here": 2},
    "total": None,
}


class PromptBuilder:
    """Builds prompts for the LLM with catalog context and conversation history."""

    def __init__(self, marker: str = None, max_turns: int = None):
        self.marker = marker or Config.ORDER_MARKER
        self.max_turns = max_turns or Config.MAX_CONVERSATION_TURNS

    def format_catalog(self, catalog: Iterable[ProductSnapshot], lang: str, now: datetime) -> str:
        lines = []
        for product in catalog:
            price = f"{product.base_price:.2f} {product.currency}"
            discount = "-"
            if discount_applies(product, product.allowed_categories or (), now):
                amount = (
                    f"{product.discount_value:g}%" if product.discount_type == "percentage"
                    else f"{product.discount_value:.2f} {product.currency}"
                )
                discount = f"{product.discount_name or 'discount'}: -{amount}"
                if product.allowed_categories:
                    discount += " (only for customer groups: " + ", ".join(sorted(product.allowed_categories)) + ")"
                if product.discount_ends_at:
                    discount += f", valid until {product.discount_ends_at:%Y-%m-%d %H:%M} UTC"
            lines.append(f"- {product.sku} | {product.display_name(lang)} | {price} | {discount}")
        if not lines:
            return "(no products are available right now; tell the customer politely)"
        return "\n".join(lines)

    def build_system_prompt(self, profile: ProjectProfile, catalog: Iterable[ProductSnapshot],
                            lang: str, now: datetime) -> str:
        return SYSTEM_TEMPLATE.format(
            business_name=profile.business_name,
            language_name=LANGUAGE_NAMES.get(lang, "the customer's language"),
            catalog=self.format_catalog(catalog, lang, now),
            marker=self.marker,
            example=json.dumps(EXAMPLE_PAYLOAD, ensure_ascii=False),
        )

    def trim_history(self, messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
        """Keep user/assistant turns only, at most the last ``max_turns``."""
        kept = [
            {"role": m["role"], "content": m.get("content") or ""}
            for m in messages
            if m.get("role") in ("user", "assistant") and (m.get("content") or "").strip()
        ]
        return kept[-self.max_turns:]

    def build_messages(self, profile: ProjectProfile, catalog: Iterable[ProductSnapshot], lang: str,
                       history: List[Dict[str, str]], now: datetime) -> List[Dict[str, str]]:
        catalog = list(catalog)
        system = self.build_system_prompt(profile, catalog, lang, now)
        trimmed = self.trim_history(history)
        logger.debug("Prompt built: %d catalog items, %d turns, %d system chars",
                     len(catalog), len(trimmed), len(system))
        return [{"role": "system", "content": system}] + trimmed
