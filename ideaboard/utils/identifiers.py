import random
import secrets
import time
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

SHORT_CODE_LENGTH = 6
# Join codes drop glyphs that read alike on a projector: 0/O, 1/I and L.
SHORT_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"

CO_ADMIN_TOKEN_PREFIX = "ca"


def generate_id() -> str:
    return str(uuid4())


def generate_short_code(rng: Optional[random.Random] = None) -> str:
    """
    Return a human-transcribable join code.
    Not suitable as a secret: uniqueness is checked by the caller.
    """
    chooser = rng or random
    return "".join(
        chooser.choice(SHORT_CODE_ALPHABET) for _ in range(SHORT_CODE_LENGTH)
    )


def generate_unique_short_code(
    db: Session,
    generator: Callable[[], str] = generate_short_code,
) -> str:
    """
    Draw codes until one is unused by any session.
    There is no retry cap; with 31**6 codes exhaustion is not a practical concern.
    """
    from ideaboard.models.session import WorkshopSession

    while True:
        candidate = generator()
        existing = (
            db.query(WorkshopSession.session_id)
            .filter(WorkshopSession.short_code == candidate)
            .first()
        )
        if existing is None:
            return candidate


def _format_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if number == 0:
        return "0"
    result = []
    while number:
        number, remainder = divmod(number, 36)
        result.append(digits[remainder])
    return "".join(reversed(result))


def generate_co_admin_token() -> str:
    """Opaque invite token of the form ca_<base36 millis>_<random>."""
    millis = int(time.time() * 1000)
    return f"{CO_ADMIN_TOKEN_PREFIX}_{_format_base36(millis)}_{secrets.token_urlsafe(12)}"
