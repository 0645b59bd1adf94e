import logging
import random
from collections.abc import Awaitable, Callable

from fleet_tracking.core.config import settings
from fleet_tracking.core.exceptions import GenerationExhaustedError

logger = logging.getLogger(__name__)

_default_rng = random.Random()


def tracking_number_prefix(company_name: str | None) -> str:
    if company_name and company_name.strip():
        return company_name.strip()[:3].upper()
    return settings.tracking_fallback_prefix.upper()


def generate_tracking_number(
    region: str = "SG",
    length: int = 10,
    *,
    company_name: str | None = None,
    rng: random.Random | None = None,
) -> str:
    """Build ``<prefix><length digits><REGION>``, e.g. ``ACM0123456789US``.

    The digits only need to avoid collisions, not resist guessing, so a
    plain ``random.Random`` is used.
    """
    rng = rng or _default_rng
    digits = "".join(str(rng.randint(0, 9)) for _ in range(length))
    return f"{tracking_number_prefix(company_name)}{digits}{region.upper()}"


async def generate_unique_tracking_number(
    exists: Callable[[str], Awaitable[bool]],
    *,
    region: str = "SG",
    length: int = 10,
    company_name: str | None = None,
    rng: random.Random | None = None,
    max_attempts: int | None = None,
) -> str:
    """Generate codes until ``exists`` reports one as free.

    ``exists`` must also see soft-deleted rows. Raises
    GenerationExhaustedError once ``max_attempts`` codes have collided.
    """
    max_attempts = max_attempts or settings.tracking_max_generation_attempts
    for attempt in range(1, max_attempts + 1):
        code = generate_tracking_number(
            region, length, company_name=company_name, rng=rng
        )
        if not await exists(code):
            return code
        logger.warning(
            "Tracking number collision on %s (attempt %d/%d)",
            code, attempt, max_attempts,
        )
    raise GenerationExhaustedError(max_attempts)
