"""Security helpers: phone masking, payload redaction and PIN hashing."""
import hashlib
import hmac
import secrets
from typing import Any, Dict, Optional

from ..app.config import Config

_ALGORITHM = "pbkdf2_sha256"


def mask_phone(phone: Optional[str]) -> str:
    """Keep the country prefix and last three digits, e.g. ``+3856*****001``."""
    if not phone:
        return "<none>"
    if len(phone) <= 6:
        return "*" * len(phone)
    return phone[:5] + "*" * (len(phone) - 8) + phone[-3:]


def redact_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a structured order payload that is safe to log."""
    safe = dict(payload)
    if safe.get("pin") is not None:
        safe["pin"] = "***"
    if safe.get("phone"):
        safe["phone"] = mask_phone(str(safe["phone"]))
    return safe


class PinHasher:
    """Salted PBKDF2 hashing for customer PINs.

    Hashes look like ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>`` so the
    iteration count can be raised later without invalidating stored PINs.
    """

    def __init__(self, iterations: int = None):
        self.iterations = iterations or Config.PIN_HASH_ITERATIONS

    def _digest(self, pin: str, salt: str, iterations: int) -> str:
        raw = hashlib.pbkdf2_hmac("sha256", pin.encode("utf-8"), salt.encode("utf-8"), iterations)
        return raw.hex()

    def hash_pin(self, pin: str) -> str:
        salt = secrets.token_hex(8)
        digest = self._digest(pin, salt, self.iterations)
        return f"{_ALGORITHM}${self.iterations}${salt}${digest}"

    def verify_pin(self, pin: str, stored: Optional[str]) -> bool:
        if not pin or not stored:
            return False
        try:
            algorithm, iterations, salt, digest = stored.split("$", 3)
            iterations = int(iterations)
        except ValueError:
            return False
        if algorithm != _ALGORITHM:
            return False
        candidate = self._digest(pin, salt, iterations)
        return hmac.compare_digest(candidate, digest)
