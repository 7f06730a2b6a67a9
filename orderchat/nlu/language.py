"""Rule-based language guess for the latest user message."""
import re
from difflib import SequenceMatcher
from typing import Dict, List, Optional

from ..app.config import Config
from ..app.tenant import normalize_lang

VOCAB: Dict[str, List[str]] = {
    "hr": ["bok", "molim", "hvala", "želim", "zelim", "htio", "htjela", "narudžba", "narudzba",
           "naručiti", "naruciti", "sir", "sirom", "meso", "mesom", "krumpir", "sutra", "danas",
           "preuzimanje", "komada", "moj", "broj", "dobar", "dan"],
    "de": ["hallo", "bitte", "danke", "ich", "möchte", "moechte", "bestellen", "bestellung",
           "käse", "kaese", "fleisch", "kartoffel", "kartoffeln", "abholen", "abholung", "morgen",
           "heute", "stück", "stueck", "meine", "nummer", "guten", "tag"],
    "en": ["hello", "hi", "please", "thanks", "thank", "want", "would", "like", "order",
           "cheese", "meat", "potato", "pickup", "pick", "tomorrow", "today", "pieces",
           "my", "number", "good", "morning"],
}


def _score(tokens: List[str], vocab: List[str]) -> int:
    hits = 0
    for t in tokens:
        if t in vocab:
            hits += 1
            continue
        if len(t) >= 5 and any(SequenceMatcher(None, t, w).ratio() >= 0.85 for w in vocab):
            hits += 1
    return hits


def detect_language(text: str) -> Optional[str]:
    """Best-scoring language, or None on no hits or a tie."""
    tokens = re.findall(r"[^\W\d_]+", (text or "").lower())
    if not tokens:
        return None
    scores = {lang: _score(tokens, vocab) for lang, vocab in VOCAB.items()}
    best = max(scores.values())
    if best == 0:
        return None
    leaders = [lang for lang, s in scores.items() if s == best]
    return leaders[0] if len(leaders) == 1 else None


def resolve_language(explicit: Optional[str], last_user_message: Optional[str] = None) -> str:
    """Explicit preference first, then a guess from the message, then the default."""
    lang = normalize_lang(explicit)
    if lang:
        return lang
    return detect_language(last_user_message) or Config.DEFAULT_LANG
