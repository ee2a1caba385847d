from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest

from apps.command_dispatcher import CommandDispatcher, load_catalog
from apps.command_dispatcher.handlers import default_handlers
from lib.config.settings import AppSettings
from lib.contracts.errors import DataServiceError, RecordNotFound, Unauthorized
from lib.contracts.identity import Identity
from lib.contracts.replies import ChatReply, Usage

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)

TIERS: List[Dict[str, Any]] = [
    {
        "name": "Rookie Rider",
        "min_points": 0,
        "max_points": 499,
        "color": "🏁",
        "benefits": ["Starter Kit Digital", "Basic missions"],
    },
    {
        "name": "Pro Racer",
        "min_points": 500,
        "max_points": 1499,
        "color": "🏍️",
        "benefits": ["Bonus 1.2x", "Social feature", "Merchandise", "Kopdar", "Webinar"],
    },
    {
        "name": "HPZ Legend",
        "min_points": 1500,
        "max_points": None,
        "color": "🏆",
        "benefits": ["Free monthly product", "Exclusive events"],
    },
]


def tier_for(points: int) -> Dict[str, Any]:
    return [t for t in TIERS if t["min_points"] <= points][-1]


class FakeIdentityVerifier:
    def __init__(self, identity: Identity, token: str = "good-token") -> None:
        self.identity = identity
        self.token = token

    async def verify(self, token: str) -> Identity:
        if not token:
            raise Unauthorized("No authorization token provided.")
        if token != self.token:
            raise Unauthorized("Invalid or expired token.")
        return self.identity


class FakeDataGateway:
    """In-memory stand-in for :class:`lib.gateways.data.DataGateway`.

    ``fail`` names the methods that raise :class:`DataServiceError`.
    """

    def __init__(self, points: int = 620, fail: tuple = ()) -> None:
        self.points = points
        self.fail = set(fail)
        self.missions: List[Dict[str, Any]] = [
            {
                "id": 11,
                "title": "Sunday Morning Ride",
                "description": "Share foto riding pagi",
                "reward_points": 30,
                "end_date": "2025-03-13T00:00:00Z",
                "status": "active",
                "mission_type": "weekly",
            },
            {
                "id": 12,
                "title": "Garage Tour",
                "description": "Video tur garasi",
                "reward_points": 120,
                "end_date": "2025-03-10T06:00:00+00:00",
                "status": "active",
                "mission_type": "monthly",
            },
        ]
        self.activities = [
            {"description": "Konten approved", "points": 50, "created_at": "2025-03-09T22:15:00+00:00"},
            {"description": "Referral", "points": 100, "created_at": "2025-03-01T08:00:00Z"},
        ]
        self.counts = {"content": 4, "sales": 1, "referrals": 2}
        self.created_at = "2025-01-09T12:00:00Z"
        self.calls: List[str] = []

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise DataServiceError(f"{name} unavailable")

    async def user_account_id(self, auth_user_id: str) -> Any:
        self._check("user_account_id")
        return 42

    async def user_points(self, account_id: Any, initialize: bool = True) -> Dict[str, Any]:
        self._check("user_points")
        if "user_points_missing" in self.fail and not initialize:
            raise RecordNotFound("no row in user_points")
        return {"total_points": self.points, "tiers": dict(tier_for(self.points))}

    async def tier_ladder(self) -> List[Dict[str, Any]]:
        self._check("tier_ladder")
        return [dict(t) for t in TIERS]

    async def recent_activities(self, account_id: Any, limit: int = 3) -> List[Dict[str, Any]]:
        self._check("recent_activities")
        return self.activities[:limit]

    async def active_missions(self) -> List[Dict[str, Any]]:
        self._check("active_missions")
        return list(self.missions)

    async def count_approved_content(self) -> int:
        self._check("count_approved_content")
        return self.counts["content"]

    async def count_approved_sales(self, account_id: Any) -> int:
        self._check("count_approved_sales")
        return self.counts["sales"]

    async def count_referrals(self, account_id: Any) -> int:
        self._check("count_referrals")
        return self.counts["referrals"]

    async def account_created_at(self, account_id: Any) -> str:
        self._check("account_created_at")
        return self.created_at


class FakeCompletion:
    def __init__(self, content: str = "Halo rider! 🏍️", valid_key: bool = True) -> None:
        self.content = content
        self.valid_key = valid_key
        self.requests: List[Dict[str, Any]] = []
        self.closed = False

    async def complete(self, user_message: str, context: Dict[str, Any] | None = None) -> ChatReply:
        self.requests.append({"message": user_message, "context": context})
        return ChatReply(
            content=self.content,
            model="test-model",
            usage=Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        )

    async def validate_api_key(self) -> bool:
        return self.valid_key

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def identity() -> Identity:
    return Identity(
        id="7f1c9a52-user",
        email="rider@example.com",
        user_metadata={"name": "Budi"},
        app_metadata={"provider": "email"},
        created_at="2025-01-09T12:00:00Z",
    )


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def data() -> FakeDataGateway:
    return FakeDataGateway()


@pytest.fixture
def dispatcher_for(catalog):
    def build(data_gateway, timeout: float = 1.0) -> CommandDispatcher:
        handlers = default_handlers(data_gateway, catalog, timeout=timeout, clock=lambda: NOW)
        return CommandDispatcher(handlers, catalog)

    return build


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        supabase_url="https://project.supabase.co",
        supabase_anon_key="anon-key",
        open_api_key="sk-or-test",
        environment="development",
        rate_limit_max_requests=100,
    )
