from __future__ import annotations

from pathlib import Path
from typing import List

from .errors import InvalidConfiguration


def parse_scene_listing(listing: str) -> List[str]:
    """Scenario names from a listing file or a comma-separated string.

    Files hold one name per line; lines starting with ``#`` are comments.
    Duplicates are dropped, keeping the first occurrence.
    """
    path = Path(listing)
    if path.is_file():
        lines = [line.strip() for line in path.read_text().splitlines() if not line.startswith("#")]
    else:
        lines = [part.strip() for part in listing.split(",")]
    names = list(dict.fromkeys(name for name in lines if name))
    if not names:
        raise InvalidConfiguration(f"No scenarios in listing {listing!r}")
    return names
