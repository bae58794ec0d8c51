from __future__ import annotations

import random
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .errors import IdentityLoadError


def parse_identities(lines: Iterable[str]) -> tuple[str, ...]:
    identities: list[str] = []
    seen: set[str] = set()
    for line in lines:
        identity = line.strip()
        if not identity:
            continue
        if identity in seen:
            raise IdentityLoadError(f"duplicate identity {identity!r}")
        seen.add(identity)
        identities.append(identity)
    return tuple(identities)


def load_identities(path: Path) -> tuple[str, ...]:
    """Read one identity per non-blank line, preserving file order."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IdentityLoadError(f"failed to read identities from {path}: {exc}") from exc
    return parse_identities(text.splitlines())


def select_fleet(identities: Sequence[str], num_bots: int) -> tuple[str, ...]:
    if num_bots <= 0:
        raise IdentityLoadError(f"fleet size must be > 0, got {num_bots}")
    if num_bots > len(identities):
        raise IdentityLoadError(
            f"requested {num_bots} bots but only {len(identities)} identities are available"
        )
    return tuple(identities[:num_bots])


def pick_random_peer(
    identity: str,
    identities: Sequence[str],
    rng: Optional[random.Random] = None,
) -> Optional[str]:
    """Uniformly pick an identity other than ``identity``, or ``None`` if there is none."""
    if len(identities) < 2:
        return None
    choice = (rng or random).choice
    while True:
        peer = choice(identities)
        if peer != identity:
            return peer


__all__ = [
    "load_identities",
    "parse_identities",
    "pick_random_peer",
    "select_fleet",
]
