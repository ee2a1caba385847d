"""Pydantic models for the data behind each command, plus tier arithmetic.

Snapshots are read-only projections of a user's standing.  They are fetched
fresh on every command call and serialised with camelCase keys as the
``data`` field of a :class:`~lib.contracts.replies.CommandResult`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from lib.utils.helpers import clamp

DEFAULT_TIER_COLOR = "🏍️"


class _Snapshot(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_data(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class Mission(_Snapshot):
    id: Any = None
    title: str
    description: str = ""
    reward: str
    deadline: str
    status: str = "active"


class MissionsSnapshot(_Snapshot):
    weekly: List[Mission] = Field(default_factory=list)
    monthly: List[Mission] = Field(default_factory=list)


class Activity(_Snapshot):
    description: str = ""
    points: int = 0
    date: str


class PointsSnapshot(_Snapshot):
    points: int = 0
    tier: str
    points_to_next_tier: int = 0
    recent_activities: List[Activity] = Field(default_factory=list)


class TierInfo(_Snapshot):
    name: str
    min_points: int = 0
    max_points: Optional[int] = None
    color: str = DEFAULT_TIER_COLOR
    benefits: List[str] = Field(default_factory=list)

    @field_validator("color", mode="before")
    @classmethod
    def _default_color(cls, v: Any) -> Any:
        return v or DEFAULT_TIER_COLOR

    @field_validator("benefits", mode="before")
    @classmethod
    def _list_only(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TierInfo":
        return cls(
            name=row.get("name") or "",
            min_points=int(row.get("min_points") or 0),
            max_points=row.get("max_points"),
            color=row.get("color"),
            benefits=row.get("benefits"),
        )


class TierSnapshot(_Snapshot):
    current: TierInfo
    next: Optional[TierInfo] = None
    current_points: int = 0
    points_needed: int = 0
    progress_percentage: float = 0.0


class Requirements(_Snapshot):
    content: str
    sales: str
    membership: str
    mentoring: str


class UpgradeSnapshot(_Snapshot):
    current_tier: str
    next_tier: str
    current_points: int = 0
    needed_points: int = 0
    requirements: Requirements

    @property
    def point_gap(self) -> int:
        return self.needed_points - self.current_points


class FaqEntry(_Snapshot):
    question: str
    answer: str


# ---------------------------------------------------------------------------
# Tier arithmetic
# ---------------------------------------------------------------------------


def next_tier(ladder: Sequence[Mapping[str, Any]], points: int) -> Optional[Mapping[str, Any]]:
    """Lowest-threshold tier whose minimum exceeds ``points``."""

    above = [t for t in ladder if int(t.get("min_points") or 0) > points]
    if not above:
        return None
    return min(above, key=lambda t: int(t.get("min_points") or 0))


def points_gap(nxt: Optional[Mapping[str, Any]], points: int) -> int:
    if nxt is None:
        return 0
    return int(nxt.get("min_points") or 0) - points


def tier_progress(points: int, current_min: int, next_min: Optional[int]) -> float:
    """Percent of the way from the current tier's minimum to the next one."""

    if next_min is None:
        return 100.0
    span = next_min - current_min
    if span <= 0:
        return 100.0
    return clamp(100.0 * (points - current_min) / span, 0.0, 100.0)
