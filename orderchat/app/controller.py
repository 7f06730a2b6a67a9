"""Controller / Orchestrator for one chat turn.

Each turn is stateless: the client resends the bounded history, the
controller builds the prompt from the live catalog, calls the model, splits
off the structured order block and, when present, runs it through the order
agent. Customers only ever see localized text, never internal error codes.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .generate import GenerationClient, GenerationError
from .locales import message
from .locking import LockTimeout
from .postprocess import ParsedTurn, Postprocessor
from .prompt_builder import PromptBuilder
from .tenant import get_project
from ..agents.order_agent import OrderAgent
from ..data.models import utcnow
from ..nlu.language import resolve_language
from ..utils.logger import get_logger
from ..utils.security import mask_phone, redact_payload

logger = get_logger(__name__)

REJECTIONS = ("no_phone", "no_pin", "wrong_pin")


@dataclass
class ChatResult:
    reply: str
    lang: str
    outcome: str = "none"
    order_id: Optional[int] = None
    facts: Dict[str, Any] = field(default_factory=dict)


class Controller:
    def __init__(self, gen_client: GenerationClient = None, order_agent: OrderAgent = None,
                 builder: PromptBuilder = None, postprocessor: Postprocessor = None):
        self.gen_client = gen_client or GenerationClient()
        self.order_agent = order_agent or OrderAgent()
        self.builder = builder or PromptBuilder()
        self.postprocessor = postprocessor or Postprocessor()

    @property
    def catalog(self):
        return self.order_agent.catalog

    @staticmethod
    def _last_user_message(messages: List[Dict[str, str]]) -> str:
        for m in reversed(messages):
            if m.get("role") == "user":
                return m.get("content") or ""
        return ""

    def handle_chat(self, db: Session, project_id: str, lang: Optional[str], messages: List[Dict[str, str]],
                    client_ip: Optional[str] = None, user_agent: Optional[str] = None) -> ChatResult:
        profile = get_project(project_id)
        project_id = profile.project_id
        lang = resolve_language(lang, self._last_user_message(messages))
        now = utcnow()
        logger.info("[WORKFLOW] 1. Chat turn for project %s (lang=%s, %d messages)", project_id, lang, len(messages))

        try:
            catalog = self.catalog.snapshot(db, project_id)
        except SQLAlchemyError:
            logger.exception("Catalog lookup failed for project %s", project_id)
            return ChatResult(reply=message(lang, "generic_error"), lang=lang, outcome="failed")

        prompt = self.builder.build_messages(profile, catalog, lang, messages, now)

        logger.info("[WORKFLOW] 2. Generating reply")
        try:
            raw = self.gen_client.complete(prompt)
        except GenerationError as e:
            logger.error("Generation failed for project %s: %s", project_id, e)
            return ChatResult(reply=message(lang, "generic_error"), lang=lang, outcome="failed")

        turn = self.postprocessor.parse(raw)
        if not turn.has_payload:
            if turn.error == "invalid payload":
                return self._unusable_payload(lang, turn)
            if turn.marker_found:
                logger.warning("[WORKFLOW] 3. Order block dropped (%s); conversation continues", turn.error)
            return ChatResult(reply=turn.reply, lang=lang)

        logger.info("[WORKFLOW] 3. Order block received: %s", redact_payload(turn.payload.model_dump()))
        return self._confirm(db, project_id, lang, turn, client_ip, user_agent, now)

    @staticmethod
    def _unusable_payload(lang: str, turn: ParsedTurn) -> ChatResult:
        # the model believes the order is confirmed, but nothing was written
        if "phone" in turn.invalid_fields:
            outcome = "no_phone"
        elif "pin" in turn.invalid_fields:
            outcome = "no_pin"
        else:
            outcome = "not_confirmed"
        logger.warning("[WORKFLOW] 3. Order block rejected (%s at %s)", outcome, ", ".join(turn.invalid_fields))
        return ChatResult(reply=message(lang, outcome), lang=lang, outcome=outcome,
                          facts={"invalid_fields": list(turn.invalid_fields)})

    def _confirm(self, db: Session, project_id: str, lang: str, turn: ParsedTurn,
                 client_ip: Optional[str], user_agent: Optional[str], now) -> ChatResult:
        intent = turn.payload
        try:
            result = self.order_agent.confirm(db, project_id, intent, client_ip=client_ip,
                                              user_agent=user_agent, now=now)
        except (SQLAlchemyError, LockTimeout) as e:
            logger.error("Order not persisted for project %s, phone %s: %s",
                         project_id, mask_phone(intent.phone), e.__class__.__name__)
            return ChatResult(reply=message(lang, "generic_error"), lang=lang, outcome="failed")

        facts = result.facts
        outcome = result.outcome
        logger.info("[WORKFLOW] 4. Order outcome: %s", outcome)

        if outcome in REJECTIONS:
            # the model's reply may claim success; replace it entirely
            reply = message(lang, outcome, phone=facts.get("phone", ""))
            return ChatResult(reply=reply, lang=lang, outcome=outcome, facts=facts)

        if outcome == "incomplete":
            missing = ", ".join(message(lang, f"missing_{m}") for m in facts.get("missing", []))
            return ChatResult(reply=message(lang, "incomplete", missing=missing), lang=lang,
                              outcome=outcome, facts=facts)

        if outcome == "unknown_items":
            return ChatResult(reply=message(lang, "unknown_items"), lang=lang, outcome=outcome, facts=facts)

        if outcome == "duplicate":
            note = message(lang, "duplicate", order_id=facts["order_id"], total=facts["total"],
                           currency=facts["currency"])
        else:
            note = message(lang, "confirmed", order_id=facts["order_id"], total=facts["total"],
                           currency=facts["currency"], pickup_time=facts.get("pickup_time") or "")
            if facts.get("previous_id"):
                note += " " + message(lang, "superseded", previous_id=facts["previous_id"])

        reply = f"{turn.reply}\n\n{note}" if turn.reply else note
        return ChatResult(reply=reply, lang=lang, outcome=outcome, order_id=facts["order_id"], facts=facts)
