"""Small string helpers shared by communities, events and tag aggregation."""
import re
import unicodedata
from typing import Iterable, Optional

SLUG_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
SLUG_MIN_LENGTH = 3


def generate_slug(text: str) -> str:
    """'Morning Runners!' -> 'morning-runners'; accents are folded to ASCII."""
    slug = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = slug.lower().strip()
    slug = re.sub(r"[^a-z0-9_\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def slug_problem(slug: str) -> Optional[str]:
    """Return why a slug is unusable, or None if it is fine."""
    if len(slug) < SLUG_MIN_LENGTH:
        return f"Slug must be at least {SLUG_MIN_LENGTH} characters"
    if not SLUG_PATTERN.match(slug):
        return "Slug can only contain letters, numbers, underscores and hyphens"
    return None


def clean_tag(tag: object, max_length: int) -> Optional[str]:
    """Trimmed tag, or None when it is empty, not a string or too long."""
    if not isinstance(tag, str):
        return None
    tag = tag.strip()
    if not tag or len(tag) > max_length:
        return None
    return tag


def dedupe_tags(tags: Iterable[object], max_length: int = 50) -> list[str]:
    """Case-insensitive dedup keeping the first spelling, in input order."""
    seen: set[str] = set()
    result: list[str] = []
    for raw in tags or []:
        tag = clean_tag(raw, max_length)
        if tag is None or tag.lower() in seen:
            continue
        seen.add(tag.lower())
        result.append(tag)
    return result
