"""Relational data service gateway.

Tables are reached through the ``supabase`` client's query builder.  This
module wraps the queries the command handlers need (points, tiers, missions,
activities and the upgrade counters) and translates library failures into
:class:`DataServiceError` / :class:`RecordNotFound`.
"""

from __future__ import annotations

from typing import Any, Dict, List

import httpx
from supabase import AsyncClient, PostgrestAPIError

from lib.contracts.errors import DataServiceError, RecordNotFound
from lib.telemetry.logger import get_logger

logger = get_logger(__name__)

POINTS_COLUMNS = (
    "total_points,submission_points,approval_points,engagement_points,"
    "weekly_win_points,created_at,"
    "tiers(name,min_points,max_points,color,benefits)"
)
TIER_COLUMNS = "name,min_points,max_points,color,benefits"


class DataGateway:
    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    # ----- Helpers -----
    @staticmethod
    async def _execute(query: Any, table: str) -> Any:
        try:
            return await query.execute()
        except PostgrestAPIError as exc:
            raise DataServiceError(f"{table}: {exc.message or exc.code}") from exc
        except httpx.HTTPError as exc:
            raise DataServiceError(f"{table} unreachable: {exc}") from exc

    async def _one(self, query: Any, table: str) -> Dict[str, Any]:
        resp = await self._execute(query.maybe_single(), table)
        if resp is None or resp.data is None:
            raise RecordNotFound(f"no row in {table}")
        if not isinstance(resp.data, dict):
            raise DataServiceError(f"expected a single row from {table}")
        return resp.data

    async def _rows(self, query: Any, table: str) -> List[Dict[str, Any]]:
        resp = await self._execute(query, table)
        if not isinstance(resp.data, list):
            raise DataServiceError(f"expected a row list from {table}")
        return resp.data

    async def _count(self, query: Any, table: str) -> int:
        resp = await self._execute(query, table)
        if resp.count is None:
            raise DataServiceError(f"no exact count returned for {table}")
        return resp.count

    def _counting(self, table: str) -> Any:
        return self.client.table(table).select("id", count="exact", head=True)

    # ----- Domain queries -----
    async def user_account_id(self, auth_user_id: str) -> Any:
        """Map an identity id to the internal ``user_accounts.id``."""

        row = await self._one(
            self.client.table("user_accounts").select("id").eq("auth_user_id", auth_user_id),
            "user_accounts",
        )
        account_id = row.get("id")
        if account_id is None:
            raise RecordNotFound("user account not found")
        return account_id

    async def user_points(self, account_id: Any, initialize: bool = True) -> Dict[str, Any]:
        """Points row with its tier embedded.

        A missing row is created with service defaults when ``initialize`` is
        set, so first-time users start at zero instead of failing.
        """

        try:
            return await self._one(
                self.client.table("user_points").select(POINTS_COLUMNS).eq("user_id", account_id),
                "user_points",
            )
        except RecordNotFound:
            if not initialize:
                raise
        logger.info("Initializing user_points for account %s", account_id)
        created = await self._rows(
            self.client.table("user_points").insert({"user_id": account_id}).select(POINTS_COLUMNS),
            "user_points",
        )
        if not created:
            raise DataServiceError("user_points insert returned no row")
        return created[0]

    async def tier_ladder(self) -> List[Dict[str, Any]]:
        """All tiers, lowest threshold first."""

        return await self._rows(
            self.client.table("tiers").select(TIER_COLUMNS).order("min_points"),
            "tiers",
        )

    async def recent_activities(self, account_id: Any, limit: int = 3) -> List[Dict[str, Any]]:
        return await self._rows(
            self.client.table("chatbot_activities")
            .select("description,points,created_at")
            .eq("user_account_id", account_id)
            .order("created_at", desc=True)
            .limit(limit),
            "chatbot_activities",
        )

    async def active_missions(self) -> List[Dict[str, Any]]:
        return await self._rows(
            self.client.table("chatbot_missions").select("*").eq("status", "active").order("end_date"),
            "chatbot_missions",
        )

    async def count_approved_content(self) -> int:
        return await self._count(
            self._counting("ugc_content").eq("status", "approved_for_repost"),
            "ugc_content",
        )

    async def count_approved_sales(self, account_id: Any) -> int:
        return await self._count(
            self._counting("affiliate_sales").eq("user_account_id", account_id).eq("status", "approved"),
            "affiliate_sales",
        )

    async def count_referrals(self, account_id: Any) -> int:
        return await self._count(
            self._counting("user_accounts").eq("referred_by", account_id),
            "user_accounts",
        )

    async def account_created_at(self, account_id: Any) -> str:
        row = await self._one(
            self.client.table("user_accounts").select("created_at").eq("id", account_id),
            "user_accounts",
        )
        created = row.get("created_at")
        if not created:
            raise RecordNotFound("account has no creation date")
        return created
