import pytest
from fastapi.testclient import TestClient

from apps.chat_api import create_app
from apps.command_dispatcher.tokens import CommandToken
from lib.contracts.replies import ChatReply
from lib.gateways.completion import APOLOGY

from conftest import FakeCompletion, FakeDataGateway, FakeIdentityVerifier

AUTH = {"Authorization": "Bearer good-token"}


class FailingCompletion(FakeCompletion):
    async def complete(self, user_message, context=None):
        self.requests.append({"message": user_message, "context": context})
        return ChatReply(content=APOLOGY, error="Insufficient OpenRouter credits")


class ExplodingIdentity(FakeIdentityVerifier):
    async def verify(self, token):
        raise RuntimeError("identity client bug")


@pytest.fixture
def gateways(identity):
    return {
        "identity": FakeIdentityVerifier(identity),
        "data": FakeDataGateway(),
        "completion": FakeCompletion(),
    }


@pytest.fixture
def client(settings, gateways):
    app = create_app(settings, **gateways)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["service"] == "HPZ Chatbot Backend"
    assert body["version"] == "1.0.0"
    assert body["timestamp"].endswith("Z")


def test_faq_message_returns_command_reply(client):
    response = client.post("/api/chat/message", json={"message": "/faq"}, headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["type"] == "command"
    assert body["response"]["type"] == "faq"
    assert len(body["response"]["data"]) == 8
    assert body["response"]["content"].startswith("# ❓ FAQ (Pertanyaan Dasar)")


def test_free_text_returns_ai_reply(client, gateways):
    response = client.post(
        "/api/chat/message",
        json={"message": "halo", "context": {"userTier": "Pro Racer", "userPoints": 620}},
        headers=AUTH,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "ai"
    assert body["response"] == {
        "content": "Halo rider! 🏍️",
        "model": "test-model",
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }
    assert gateways["completion"].requests[0]["context"]["userName"] == "Budi"


def test_provider_failure_is_still_a_success(settings, identity):
    app = create_app(
        settings,
        identity=FakeIdentityVerifier(identity),
        data=FakeDataGateway(),
        completion=FailingCompletion(),
    )
    with TestClient(app) as client:
        response = client.post("/api/chat/message", json={"message": "halo"}, headers=AUTH)

    assert response.status_code == 200
    assert response.json()["response"]["content"] == APOLOGY
    assert response.json()["response"]["error"] == "Insufficient OpenRouter credits"


@pytest.mark.parametrize("payload", [{"message": ""}, {}, {"message": 12}, {"message": None}])
def test_missing_or_empty_message_is_bad_request(client, payload):
    response = client.post("/api/chat/message", json=payload, headers=AUTH)

    assert response.status_code == 400
    assert response.json() == {
        "error": "Bad Request",
        "message": "Message is required and must be a string",
    }


def test_malformed_body_is_bad_request(client):
    response = client.post(
        "/api/chat/message",
        content=b"{not json",
        headers={**AUTH, "Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Bad Request"


def test_unknown_command_endpoint(client):
    response = client.post("/api/chat/command", json={"command": "/unknown"}, headers=AUTH)

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid command"
    assert body["availableCommands"] == CommandToken.all_values()


def test_command_is_required(client):
    response = client.post("/api/chat/command", json={}, headers=AUTH)

    assert response.status_code == 400
    assert response.json() == {"error": "Bad Request", "message": "Command is required"}


def test_direct_command(client):
    response = client.post("/api/chat/command", json={"command": "/TIERKU now"}, headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["command"] == "/tierku"
    assert body["response"]["type"] == "tierku"
    assert body["response"]["data"]["current"]["name"] == "Pro Racer"
    assert body["response"]["data"]["progressPercentage"] == pytest.approx(12.0)


def test_command_listing(client):
    response = client.get("/api/chat/commands", headers=AUTH)

    assert response.status_code == 200
    commands = response.json()["commands"]
    assert [c["command"] for c in commands] == CommandToken.all_values()
    assert commands[-1]["description"] == "Cara menghubungi admin HPZ"


def test_status_needs_no_auth(client):
    response = client.get("/api/chat/status")

    assert response.status_code == 200
    body = response.json()
    assert body["services"]["openRouter"] == {"status": "connected", "message": "API key valid"}
    assert body["commands"] == {"available": 6, "list": CommandToken.all_values()}


def test_auth_endpoints_echo_identity(client):
    validate = client.get("/api/auth/validate", headers=AUTH).json()
    assert validate["message"] == "Authentication successful"
    assert validate["user"] == {
        "id": "7f1c9a52-user",
        "email": "rider@example.com",
        "user_metadata": {"name": "Budi"},
    }

    me = client.get("/api/auth/me", headers=AUTH).json()
    assert me["user"]["app_metadata"] == {"provider": "email"}
    assert me["user"]["created_at"] == "2025-01-09T12:00:00Z"


def test_validate_key(client):
    response = client.post("/api/auth/validate-key")

    assert response.json() == {"success": True, "message": "OpenRouter API key is valid"}


@pytest.mark.parametrize(
    "headers, message",
    [
        ({}, "No authorization token provided."),
        ({"Authorization": "Basic abc"}, "No authorization token provided."),
        ({"Authorization": "Bearer expired"}, "Invalid or expired token."),
    ],
)
def test_authentication_failures(client, headers, message):
    response = client.post("/api/chat/message", json={"message": "halo"}, headers=headers)

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized", "message": message}


def test_unknown_route(client):
    response = client.get("/api/nothing?x=1")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found", "message": "Route /api/nothing?x=1 not found."}


def test_debug_endpoint_outside_production(client, gateways):
    response = client.post("/api/chat/message/debug", json={"message": "tes"})

    assert response.status_code == 200
    assert response.json()["type"] == "ai"
    assert gateways["completion"].requests[0]["context"]["userName"] == "dev@local"


def test_debug_endpoint_absent_in_production(settings, gateways):
    production = settings.model_copy(update={"environment": "production"})
    with TestClient(create_app(production, **gateways)) as client:
        response = client.post("/api/chat/message/debug", json={"message": "tes"})

    assert response.status_code == 404


def test_cors_allows_only_frontend(client):
    allowed = client.get("/health", headers={"Origin": "http://localhost:3000"})
    denied = client.get("/health", headers={"Origin": "https://evil.example"})

    assert allowed.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert allowed.headers["access-control-allow-credentials"] == "true"
    assert "access-control-allow-origin" not in denied.headers


def test_rate_limit(settings, gateways):
    limited = settings.model_copy(update={"rate_limit_max_requests": 2})
    with TestClient(create_app(limited, **gateways)) as client:
        assert client.get("/health").status_code == 200
        assert client.get("/api/chat/status").status_code == 200
        response = client.get("/health")

    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Too many requests"
    assert body["message"].startswith("Rate limit exceeded. Try again in ")
    assert body["message"].endswith(" seconds.")
    assert response.headers["X-RateLimit-Limit"] == "2"
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert "X-RateLimit-Reset" in response.headers


def test_rate_limit_covers_chat_routes(settings, gateways):
    limited = settings.model_copy(update={"rate_limit_max_requests": 2})
    with TestClient(create_app(limited, **gateways)) as client:
        codes = []
        for _ in range(4):
            response = client.post("/api/chat/message", json={"message": "/faq"}, headers=AUTH)
            codes.append(response.status_code)
            if response.status_code == 200:
                assert response.headers["X-RateLimit-Limit"] == "2"

    assert codes == [200, 200, 429, 429]
    assert response.json()["error"] == "Too many requests"


def test_rate_limit_runs_before_authentication(settings, gateways):
    limited = settings.model_copy(update={"rate_limit_max_requests": 1})
    with TestClient(create_app(limited, **gateways)) as client:
        first = client.get("/api/auth/me")
        second = client.get("/api/auth/me")

    assert first.status_code == 401
    assert second.status_code == 429


def test_unexpected_error_is_generic(settings, identity):
    app = create_app(
        settings,
        identity=ExplodingIdentity(identity),
        data=FakeDataGateway(),
        completion=FakeCompletion(),
    )
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/auth/me", headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal Server Error",
        "message": "An unexpected error occurred.",
    }


def test_completion_client_is_closed_on_shutdown(settings, gateways):
    with TestClient(create_app(settings, **gateways)):
        assert not gateways["completion"].closed

    assert gateways["completion"].closed
