"""ID prefixes, validation, and generation.

Every board entity gets a random ID of the form ``{prefix}{8 hex chars}``:
``zone_`` for groupings, ``list_`` for containers, ``card_`` for items.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import secrets

ID_PREFIXES: dict[str, str] = {
    "grouping": "zone_",
    "container": "list_",
    "item": "card_",
}

ID_PATTERNS: dict[str, re.Pattern[str]] = {
    kind: re.compile(rf"^{prefix}[0-9a-f]{{8}}$") for kind, prefix in ID_PREFIXES.items()
}


def generate_id(kind: str) -> str:
    """Generate a fresh ID for an entity *kind* (``grouping``, ``container``, ``item``).

    Raises:
        ValueError: If *kind* is not a known entity kind.
    """
    prefix = ID_PREFIXES.get(kind)
    if prefix is None:
        msg = f"Unknown entity kind: {kind!r}. Expected one of {sorted(ID_PREFIXES)}"
        raise ValueError(msg)
    return f"{prefix}{secrets.token_hex(4)}"


def validate_id(entity_id: str, kind: str) -> bool:
    """Check whether *entity_id* matches the expected pattern for *kind*."""
    pattern = ID_PATTERNS.get(kind)
    if pattern is None:
        return False
    return pattern.match(entity_id) is not None
