import random
import re

import pytest

from ideaboard.data.session_manager import SessionManager
from ideaboard.utils.identifiers import (
    SHORT_CODE_ALPHABET,
    SHORT_CODE_LENGTH,
    generate_co_admin_token,
    generate_short_code,
    generate_unique_short_code,
)


def test_short_code_uses_unambiguous_alphabet():
    rng = random.Random(7)
    for _ in range(200):
        code = generate_short_code(rng)
        assert len(code) == SHORT_CODE_LENGTH
        assert set(code) <= set(SHORT_CODE_ALPHABET)
    for confusable in "01OIL":
        assert confusable not in SHORT_CODE_ALPHABET


def test_short_code_is_reproducible_with_seeded_rng():
    assert generate_short_code(random.Random(42)) == generate_short_code(
        random.Random(42)
    )


@pytest.mark.usefixtures("db_session")
def test_unique_short_code_skips_codes_in_use(db_session, owner_caller):
    session = SessionManager(db_session).create(owner_caller, "Where do we start?")
    candidates = iter([session.short_code, session.short_code, "ZZZZZ9"])

    code = generate_unique_short_code(db_session, lambda: next(candidates))

    assert code == "ZZZZZ9"


def test_co_admin_token_format():
    token = generate_co_admin_token()
    assert re.fullmatch(r"ca_[0-9a-z]+_[A-Za-z0-9_-]+", token)
    assert generate_co_admin_token() != token
