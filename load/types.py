from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from risk.types import RiskLevel


@dataclass(frozen=True, slots=True)
class LoadManagementData:
    """Recommended training load for one player.

    Invariant: 20 <= recommended_load <= 100.
    """

    player_id: str
    baseline_load: float
    current_load: float
    recommended_load: float
    load_reduction: float
    risk_level: RiskLevel
    factors: Tuple[str, ...]
    duration_days: int
    last_updated: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "baselineLoad": self.baseline_load,
            "currentLoad": self.current_load,
            "recommendedLoad": self.recommended_load,
            "loadReduction": self.load_reduction,
            "riskLevel": self.risk_level.value,
            "factors": list(self.factors),
            "durationDays": int(self.duration_days),
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoadManagementData":
        return cls(
            player_id=str(d["playerId"]),
            baseline_load=float(d["baselineLoad"]),
            current_load=float(d["currentLoad"]),
            recommended_load=float(d["recommendedLoad"]),
            load_reduction=float(d["loadReduction"]),
            risk_level=RiskLevel(d["riskLevel"]),
            factors=tuple(d.get("factors") or ()),
            duration_days=int(d["durationDays"]),
            last_updated=str(d["lastUpdated"]),
        )


@dataclass(frozen=True, slots=True)
class LoadTrend:
    player_id: str
    date: str
    planned_load: float
    actual_load: float
    compliance: bool
    notes: str | None = None

    @property
    def load(self) -> float:
        return self.actual_load

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "date": self.date,
            "load": self.actual_load,
            "plannedLoad": self.planned_load,
            "compliance": bool(self.compliance),
            "notes": self.notes,
        }


@dataclass(frozen=True, slots=True)
class LoadAdjustment:
    """Real-time load change. ``recommended_adjustment`` is always negative."""

    recommended_adjustment: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"recommendedAdjustment": int(self.recommended_adjustment), "reason": self.reason}


@dataclass(frozen=True, slots=True)
class WorkloadRatio:
    player_id: str
    acute_load: float
    chronic_load: float
    ratio: float
    band: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "acuteLoad": self.acute_load,
            "chronicLoad": self.chronic_load,
            "ratio": self.ratio,
            "band": self.band,
        }
