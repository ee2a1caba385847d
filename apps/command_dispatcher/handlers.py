"""One handler per slash command.

Data-backed handlers fetch a fresh snapshot for every call and fall back to
the catalog's static dataset when any part of the fetch fails or times out.
Partial results are never merged with fallback values.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, Dict, Generic, List, Mapping, TypeVar

from lib.config.catalog_loader import CommandCatalog
from lib.contracts.identity import Identity
from lib.contracts.replies import CommandResult
from lib.gateways.data import DataGateway
from lib.telemetry.logger import get_logger, log_event
from lib.utils.helpers import _utcnow, days_since, days_until, parse_timestamp

from . import render
from .models import (
    Activity,
    FaqEntry,
    Mission,
    MissionsSnapshot,
    PointsSnapshot,
    Requirements,
    TierInfo,
    TierSnapshot,
    UpgradeSnapshot,
    _Snapshot,
    next_tier,
    points_gap,
    tier_progress,
)
from .outcome import Outcome
from .tokens import CommandToken

logger = get_logger(__name__)

S = TypeVar("S", bound=_Snapshot)

Clock = Callable[[], datetime]

MAX_TIER = "Max Tier Reached"


class CommandHandler(ABC):
    """Produces the :class:`CommandResult` for a single token."""

    token: ClassVar[CommandToken]

    @abstractmethod
    async def handle(self, identity: Identity) -> CommandResult:
        ...

    def check(self) -> None:
        """Validate static configuration; called once by the dispatcher."""

    def result(self, content: str, data: Any = None) -> CommandResult:
        return CommandResult(type=self.token.kind, content=content, data=data)


class SnapshotHandler(CommandHandler, Generic[S]):
    """Fetch, fall back, render.

    Parameters
    ----------
    data:
        Gateway for the relational data service.
    catalog:
        Source of the fallback dataset and default tier.
    timeout:
        Upper bound in seconds for the whole fetch, concurrent calls included.
    clock:
        Returns the current UTC time; injected so day counts are testable.
    """

    def __init__(
        self,
        data: DataGateway,
        catalog: CommandCatalog,
        *,
        timeout: float = 5.0,
        clock: Clock = _utcnow,
    ) -> None:
        self.data = data
        self.catalog = catalog
        self.timeout = timeout
        self.clock = clock

    @property
    @abstractmethod
    def fallback(self) -> S:
        ...

    def check(self) -> None:
        # KeyError or ValidationError on a broken catalog
        self.fallback

    @abstractmethod
    async def fetch(self, identity: Identity) -> S:
        ...

    @abstractmethod
    def render(self, snapshot: S) -> str:
        ...

    async def handle(self, identity: Identity) -> CommandResult:
        outcome = await Outcome.capture(self.fetch(identity), self.timeout)
        if not outcome.ok:
            log_event(
                logger,
                "gateway_fetch_failed",
                level=logging.WARNING,
                command=self.token.value,
                user_id=identity.id,
                error=repr(outcome.error),
            )
        snapshot = outcome.unwrap_or(self.fallback)
        return self.result(self.render(snapshot), snapshot.to_data())

    async def account_id(self, identity: Identity) -> Any:
        return await self.data.user_account_id(identity.id)


def _tier_name(points_row: Mapping[str, Any], default: str) -> str:
    tier = points_row.get("tiers") or {}
    return tier.get("name") or default


def _total_points(points_row: Mapping[str, Any]) -> int:
    return int(points_row.get("total_points") or 0)


# ---------------------------------------------------------------------------
# /misi
# ---------------------------------------------------------------------------


class MissionsHandler(SnapshotHandler[MissionsSnapshot]):
    token = CommandToken.MISI

    @property
    def fallback(self) -> MissionsSnapshot:
        return MissionsSnapshot.model_validate(self.catalog.fallback("misi"))

    def deadline(self, end_date: str) -> str:
        days = days_until(parse_timestamp(end_date), self.clock())
        return f"{days} hari lagi" if days > 0 else "Berakhir hari ini"

    def _mission(self, row: Mapping[str, Any]) -> Mission:
        return Mission(
            id=row.get("id"),
            title=row.get("title") or "",
            description=row.get("description") or "",
            reward=f"+{row.get('reward_points')} poin",
            deadline=self.deadline(row["end_date"]),
            status=row.get("status") or "active",
        )

    async def fetch(self, identity: Identity) -> MissionsSnapshot:
        rows = await self.data.active_missions()
        if not rows:
            return self.fallback
        return MissionsSnapshot(
            weekly=[self._mission(r) for r in rows if r.get("mission_type") == "weekly"],
            monthly=[self._mission(r) for r in rows if r.get("mission_type") == "monthly"],
        )

    def render(self, snapshot: MissionsSnapshot) -> str:
        return render.render_misi(snapshot)


# ---------------------------------------------------------------------------
# /poinku
# ---------------------------------------------------------------------------


class PointsHandler(SnapshotHandler[PointsSnapshot]):
    token = CommandToken.POINKU

    @property
    def fallback(self) -> PointsSnapshot:
        return PointsSnapshot.model_validate(self.catalog.fallback("poinku"))

    @staticmethod
    def _activity(row: Mapping[str, Any]) -> Activity:
        created = parse_timestamp(row["created_at"]).astimezone(timezone.utc)
        return Activity(
            description=row.get("description") or "",
            points=int(row.get("points") or 0),
            date=created.date().isoformat(),
        )

    async def fetch(self, identity: Identity) -> PointsSnapshot:
        account = await self.account_id(identity)
        points_row, ladder, activities = await asyncio.gather(
            self.data.user_points(account),
            self.data.tier_ladder(),
            self.data.recent_activities(account),
        )
        points = _total_points(points_row)
        return PointsSnapshot(
            points=points,
            tier=_tier_name(points_row, self.catalog.default_tier["name"]),
            points_to_next_tier=points_gap(next_tier(ladder, points), points),
            recent_activities=[self._activity(a) for a in activities],
        )

    def render(self, snapshot: PointsSnapshot) -> str:
        return render.render_poinku(snapshot)


# ---------------------------------------------------------------------------
# /tierku
# ---------------------------------------------------------------------------


class TierHandler(SnapshotHandler[TierSnapshot]):
    token = CommandToken.TIERKU

    @property
    def fallback(self) -> TierSnapshot:
        return TierSnapshot.model_validate(self.catalog.fallback("tierku"))

    async def fetch(self, identity: Identity) -> TierSnapshot:
        account = await self.account_id(identity)
        points_row, ladder = await asyncio.gather(
            self.data.user_points(account),
            self.data.tier_ladder(),
        )
        points = _total_points(points_row)
        tier_row = points_row.get("tiers") or self.catalog.default_tier
        current = TierInfo.from_row(tier_row)
        upcoming = next_tier(ladder, points)

        return TierSnapshot(
            current=current,
            next=TierInfo.from_row(upcoming) if upcoming else None,
            current_points=points,
            points_needed=points_gap(upcoming, points),
            progress_percentage=tier_progress(
                points,
                current.min_points,
                int(upcoming.get("min_points") or 0) if upcoming else None,
            ),
        )

    def render(self, snapshot: TierSnapshot) -> str:
        return render.render_tierku(snapshot)


# ---------------------------------------------------------------------------
# /upgrade
# ---------------------------------------------------------------------------


class UpgradeHandler(SnapshotHandler[UpgradeSnapshot]):
    token = CommandToken.UPGRADE

    @property
    def fallback(self) -> UpgradeSnapshot:
        return UpgradeSnapshot.model_validate(self.catalog.fallback("upgrade"))

    async def fetch(self, identity: Identity) -> UpgradeSnapshot:
        account = await self.account_id(identity)
        (
            points_row,
            ladder,
            content_count,
            sales_count,
            created_at,
            referral_count,
        ) = await asyncio.gather(
            self.data.user_points(account, initialize=False),
            self.data.tier_ladder(),
            self.data.count_approved_content(),
            self.data.count_approved_sales(account),
            self.data.account_created_at(account),
            self.data.count_referrals(account),
        )
        points = _total_points(points_row)
        upcoming = next_tier(ladder, points)
        membership_days = days_since(parse_timestamp(created_at), self.clock())

        return UpgradeSnapshot(
            current_tier=_tier_name(points_row, self.catalog.default_tier["name"]),
            next_tier=upcoming.get("name") if upcoming else MAX_TIER,
            current_points=points,
            needed_points=int(upcoming.get("min_points") or 0) if upcoming else points,
            requirements=Requirements(
                content=f"10 approved contents (current: {content_count})",
                sales=f"3 successful affiliate sales (current: {sales_count})",
                membership=f"90 days active membership (current: {membership_days} days)",
                mentoring=f"Mentor new members (current: {referral_count})",
            ),
        )

    def render(self, snapshot: UpgradeSnapshot) -> str:
        return render.render_upgrade(snapshot)


# ---------------------------------------------------------------------------
# Static commands
# ---------------------------------------------------------------------------


class FaqHandler(CommandHandler):
    token = CommandToken.FAQ

    def __init__(self, catalog: CommandCatalog) -> None:
        self.entries: List[FaqEntry] = [FaqEntry.model_validate(e) for e in catalog.faq]

    async def handle(self, identity: Identity) -> CommandResult:
        return self.result(
            render.render_faq(self.entries),
            [e.to_data() for e in self.entries],
        )


class ContactAdminHandler(CommandHandler):
    token = CommandToken.HUBUNGI_ADMIN

    async def handle(self, identity: Identity) -> CommandResult:
        data: Dict[str, Any] = {"userId": identity.id, "userEmail": identity.email}
        return self.result(render.render_hubungiadmin(identity), data)


def default_handlers(
    data: DataGateway,
    catalog: CommandCatalog,
    *,
    timeout: float = 5.0,
    clock: Clock = _utcnow,
) -> List[CommandHandler]:
    """The full handler set, one per :class:`CommandToken`."""

    return [
        MissionsHandler(data, catalog, timeout=timeout, clock=clock),
        PointsHandler(data, catalog, timeout=timeout, clock=clock),
        TierHandler(data, catalog, timeout=timeout, clock=clock),
        FaqHandler(catalog),
        UpgradeHandler(data, catalog, timeout=timeout, clock=clock),
        ContactAdminHandler(),
    ]
