import re
from typing import Iterable

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


def slugify(text: str) -> str:
    """'Copa Várzea 2026' -> 'copa-vrzea-2026'"""
    slug = str(text).lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w\-]+", "", slug, flags=re.ASCII)
    slug = re.sub(r"_", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def unique_slug(base: str, existing: Iterable[str]) -> str:
    """Append -1, -2, ... until the slug is not taken"""
    taken = set(existing)
    root = slugify(base)
    slug = root
    counter = 1
    while slug in taken:
        slug = f"{root}-{counter}"
        counter += 1
    return slug
