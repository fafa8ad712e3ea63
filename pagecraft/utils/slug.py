from __future__ import annotations

import re
from typing import Iterable

FALLBACK_SLUG = "app"

_INVALID_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATORS = re.compile(r"[\s_-]+", re.ASCII)
_NON_FILENAME = re.compile(r"[^a-z0-9]")


def generate_slug(text: str) -> str:
    slug = _INVALID_CHARS.sub("", text.lower().strip())
    slug = _SEPARATORS.sub("-", slug).strip("-")
    return slug or FALLBACK_SLUG


def ensure_unique_slug(base_slug: str, existing_slugs: Iterable[str]) -> str:
    taken = set(existing_slugs)
    slug = base_slug
    counter = 1
    while slug in taken:
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


def sanitize_filename(name: str) -> str:
    return _NON_FILENAME.sub("-", name.lower())
