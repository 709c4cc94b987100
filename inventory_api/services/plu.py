# inventory_api/services/plu.py

import random
import string

from sqlalchemy.orm import Session

from inventory_api.core.errors import PluExhaustedError
from inventory_api.models.products import Product

PLU_MIN = 100_000_000
PLU_MAX = 999_999_999

DEFAULT_MAX_ATTEMPTS = 10

_system_random = random.SystemRandom()


def make_plu_candidate(rng: random.Random | None = None) -> str:
    """Letter, nine digits, letter, e.g. ``K482913305Q``."""
    rng = rng or _system_random

    first = rng.choice(string.ascii_uppercase)
    number = rng.randint(PLU_MIN, PLU_MAX)
    last = rng.choice(string.ascii_uppercase)

    return f"{first}{number}{last}"


def plu_exists(db: Session, plu: str) -> bool:
    return db.query(Product.id).filter(Product.plu == plu).first() is not None


def generate_plu(
    db: Session,
    rng: random.Random | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Return a PLU that no product uses at the time of the check.

    The check is not atomic with the later insert; the unique constraint on
    ``products.plu`` catches the race and the caller retries.
    """
    for _ in range(max_attempts):
        candidate = make_plu_candidate(rng)
        if not plu_exists(db, candidate):
            return candidate

    raise PluExhaustedError(
        f"Unable to generate a unique PLU after {max_attempts} attempts."
    )
