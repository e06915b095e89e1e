"""Handle variation generation.

Turns a free-text identity query ("John Doe", "john_doe") into a short,
ordered list of candidate handles.  The first entry is always the
separator-free joined form and is used as the primary guess.  Only plausible
variations are generated so that each one is worth a network request.
"""

from __future__ import annotations

import re
from typing import Dict, List

SEPARATORS = (".", "_", "-")
IDENTITY_PREFIXES = ("the", "real", "official", "iam")
IDENTITY_SUFFIXES = ("official", "real", "dev", "hq", "admin", "profile")

MIN_VARIATIONS = 8
MAX_VARIATIONS = 12

_STYLIZED_SPLIT = re.compile(r"[._-]")


def generate_variations(query: str, max_variations: int = MAX_VARIATIONS) -> List[str]:
    """Generate an ordered, de-duplicated list of candidate handles.

    Parameters
    ----------
    query: str
        Raw identity query.  Any string is accepted, including ``""``.
    max_variations: int
        Upper bound on the number of variations, clamped to ``[8, 12]``.

    Returns
    -------
    List[str]
        Candidate handles, primary guess first.
    """
    limit = max(MIN_VARIATIONS, min(MAX_VARIATIONS, max_variations))
    cleaned = (query or "").lower().strip()
    tokens = cleaned.split()
    joined = "".join(tokens)

    # dict preserves first-insertion order
    variations: Dict[str, None] = {joined: None}
    if not joined:
        return list(variations)

    if len(tokens) > 1:
        for sep in SEPARATORS:
            variations[sep.join(tokens)] = None

    # Already-stylized handles such as "john_doe" or "jane.doe" rank ahead
    # of the decorated forms
    if any(sep in cleaned for sep in SEPARATORS):
        parts = [part for part in _STYLIZED_SPLIT.split(joined) if part]
        if len(parts) > 1:
            variations["".join(parts)] = None
            for sep in SEPARATORS:
                variations[sep.join(parts)] = None

    for prefix in IDENTITY_PREFIXES:
        variations[f"{prefix}{joined}"] = None
    for suffix in IDENTITY_SUFFIXES:
        variations[f"{joined}{suffix}"] = None

    return list(variations)[:limit]
