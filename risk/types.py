from __future__ import annotations

"""Risk levels and the alert sum type.

``RiskLevel`` is closed and totally ordered; escalation goes through
:func:`max_level` / :func:`escalate`, never string comparison.

An assessment is either :class:`NoAlert` (no factor fired) or an
:class:`InjuryRiskAlert`. Callers branch on the type, not on ``None``.
"""

import datetime as _dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple, Union


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def __lt__(self, other: object) -> bool:  # type: ignore[override]
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:  # type: ignore[override]
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:  # type: ignore[override]
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:  # type: ignore[override]
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_ORDER: Tuple[RiskLevel, ...] = (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL)
_RANK: Dict[RiskLevel, int] = {lvl: i for i, lvl in enumerate(_ORDER)}


def max_level(a: RiskLevel, b: RiskLevel) -> RiskLevel:
    return a if a.rank >= b.rank else b


def escalate(level: RiskLevel) -> RiskLevel:
    """One step up, saturating at critical."""
    return _ORDER[min(level.rank + 1, len(_ORDER) - 1)]


@dataclass(frozen=True, slots=True)
class NoAlert:
    player_id: str

    def to_dict(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class InjuryRiskAlert:
    player_id: str
    risk_level: RiskLevel
    risk_factors: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    immediate_action: bool
    timestamp: _dt.datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "riskLevel": self.risk_level.value,
            "riskFactors": list(self.risk_factors),
            "recommendations": list(self.recommendations),
            "immediateAction": bool(self.immediate_action),
            "timestamp": self.timestamp.isoformat(),
        }


RiskAssessment = Union[NoAlert, InjuryRiskAlert]
