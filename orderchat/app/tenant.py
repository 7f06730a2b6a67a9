"""Tenant (project) context: profiles, project id and language resolution."""
from dataclasses import dataclass, field
from typing import Dict, Optional

from .config import Config


@dataclass(frozen=True)
class ProjectProfile:
    project_id: str
    business_name: str
    currency: str = "EUR"
    titles: Dict[str, str] = field(default_factory=dict)
    descriptions: Dict[str, str] = field(default_factory=dict)
    welcomes: Dict[str, str] = field(default_factory=dict)

    def text(self, kind: str, lang: str) -> str:
        table = getattr(self, kind)
        return table.get(lang) or table.get("en") or next(iter(table.values()), "")


PROJECTS: Dict[str, ProjectProfile] = {
    "burek01": ProjectProfile(
        project_id="burek01",
        business_name="Burek Pekara",
        titles={
            "hr": "Burek Pekara - narudžbe",
            "de": "Burek Bäckerei - Bestellungen",
            "en": "Burek Bakery - orders",
        },
        descriptions={
            "hr": "Naručite svježi burek i preuzmite ga u pekari.",
            "de": "Bestellen Sie frischen Burek und holen Sie ihn in der Bäckerei ab.",
            "en": "Order fresh burek and pick it up at the bakery.",
        },
        welcomes={
            "hr": "Bok! Za narudžbu mi najprije pošaljite svoj broj telefona.",
            "de": "Hallo! Für eine Bestellung nennen Sie mir bitte zuerst Ihre Telefonnummer.",
            "en": "Hi! To place an order, please send me your phone number first.",
        },
    ),
}


def get_project(project_id: Optional[str]) -> ProjectProfile:
    project_id = resolve_project_id(project_id)
    profile = PROJECTS.get(project_id)
    if profile is not None:
        return profile
    return ProjectProfile(
        project_id=project_id,
        business_name=project_id,
        titles={"en": "Orders", "hr": "Narudžbe", "de": "Bestellungen"},
        descriptions={"en": "Order ahead and pick up in store."},
        welcomes={
            "hr": "Bok! Za narudžbu mi najprije pošaljite svoj broj telefona.",
            "de": "Hallo! Für eine Bestellung nennen Sie mir bitte zuerst Ihre Telefonnummer.",
            "en": "Hi! To place an order, please send me your phone number first.",
        },
    )


def resolve_project_id(project_id: Optional[str]) -> str:
    project_id = (project_id or "").strip()
    return project_id or Config.DEFAULT_PROJECT_ID


def normalize_lang(value: Optional[str]) -> Optional[str]:
    """Map ``de-AT``/``DE`` to ``de`` etc.; unknown non-empty values become the default."""
    if not value or not value.strip():
        return None
    q = value.strip().lower()
    if q.startswith("de"):
        return "de"
    if q.startswith("en"):
        return "en"
    if q.startswith("hr"):
        return "hr"
    return Config.DEFAULT_LANG
