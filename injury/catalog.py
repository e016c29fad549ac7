from __future__ import annotations

"""Body-part catalog.

Free-text body parts coming from diagnosis ("ACL", "Rotator Cuff", "lower back")
are folded into a small set of canonical identifiers before any rule table is
consulted. Rule tables elsewhere (restrictions, risk) are keyed by these
identifiers only; unknown body parts normalise to ``None`` and never match.
"""

from typing import Dict, Optional, Tuple


# ---------------------------------------------------------------------------
# Canonical identifiers
# ---------------------------------------------------------------------------

KNEE = "knee"
SHOULDER = "shoulder"
SPINE = "spine"
ANKLE = "ankle"
WRIST = "wrist"

BODY_PARTS: Tuple[str, ...] = (KNEE, SHOULDER, SPINE, ANKLE, WRIST)


# ---------------------------------------------------------------------------
# Synonyms (lower-case free text -> canonical)
# ---------------------------------------------------------------------------

BODY_PART_SYNONYMS: Dict[str, str] = {
    "knee": KNEE,
    "acl": KNEE,
    "mcl": KNEE,
    "lcl": KNEE,
    "pcl": KNEE,
    "meniscus": KNEE,
    "shoulder": SHOULDER,
    "rotator cuff": SHOULDER,
    "back": SPINE,
    "spine": SPINE,
    "lower back": SPINE,
    "upper back": SPINE,
    "lumbar": SPINE,
    "ankle": ANKLE,
    "achilles": ANKLE,
    "wrist": WRIST,
    "hand": WRIST,
}


def _clean(value: str) -> str:
    return " ".join(str(value or "").strip().lower().replace("_", " ").replace("-", " ").split())


def canonical_body_part(value: str) -> Optional[str]:
    """Return the canonical body part for ``value`` (case-insensitive), or None."""
    return BODY_PART_SYNONYMS.get(_clean(value))


def raw_body_part(value: str) -> str:
    """Lower-cased, whitespace-collapsed body part without synonym folding."""
    return _clean(value)
