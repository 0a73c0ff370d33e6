"""
Slug generation helpers.

Slugs are lowercase ASCII words joined by hyphens. Accented letters are
folded ("Encontro de Fuscas São Paulo" -> "encontro-de-fuscas-sao-paulo").

Uniqueness is checked by the caller against its repository; these helpers
only produce candidates:
- sequential_candidates: base, base-1, base-2, ... (event slugs)
- random_candidate: base-<6 hex chars> (gallery slugs)

Checking then inserting is a retry loop, not a lock. It is correct for a
single process; with several writers the repository's unique index is what
actually guarantees uniqueness, and callers retry on SlugConflictError.
"""

import re
import secrets
import unicodedata
from datetime import datetime, timezone
from typing import Iterator

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """
    Convert text to a URL slug.

    >>> slugify("Spring Meet 2026!")
    'spring-meet-2026'
    """
    decomposed = unicodedata.normalize("NFKD", text or "")
    ascii_text = decomposed.encode("ascii", "ignore").decode("ascii").lower()
    return _NON_ALNUM.sub("-", ascii_text).strip("-")


def fallback_slug(prefix: str = "event") -> str:
    """Slug for titles with no usable characters."""
    return f"{prefix}-{int(datetime.now(timezone.utc).timestamp() * 1000)}"


def sequential_candidates(base: str) -> Iterator[str]:
    """Yield base, base-1, base-2, ... without end."""
    yield base
    suffix = 1
    while True:
        yield f"{base}-{suffix}"
        suffix += 1


def random_candidate(base: str) -> str:
    """base-<6 random hex characters>."""
    return f"{base}-{secrets.token_hex(3)}"
