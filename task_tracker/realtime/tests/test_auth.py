import asyncio
from datetime import timedelta

import pytest
import socketio
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework_simplejwt.tokens import RefreshToken

from task_tracker.realtime.auth import REASON_EXPIRED
from task_tracker.realtime.auth import REASON_UNAUTHORIZED
from task_tracker.realtime.auth import HandshakeRejected
from task_tracker.realtime.auth import authenticate_token
from task_tracker.realtime.auth import extract_token
from task_tracker.realtime.socketio import register_handlers
from tests.fakes import make_hub


def access_token(user_id=42, lifetime=None) -> str:
    token = AccessToken()
    if user_id is not None:
        token["user_id"] = user_id
    if lifetime is not None:
        token.set_exp(lifetime=lifetime)
    return str(token)


class FakeServer:
    def __init__(self):
        self.handlers = {}

    def on(self, event, handler):
        self.handlers[event] = handler


@pytest.fixture
def wired():
    hub, transport = make_hub()
    server = FakeServer()
    register_handlers(server, hub)
    return server.handlers, hub, transport


class TestExtractToken:
    def test_asgi_scope_query_string(self):
        environ = {"asgi.scope": {"query_string": b"EIO=4&token=abc"}}
        assert extract_token(environ, None) == "abc"

    def test_wsgi_query_string(self):
        assert extract_token({"QUERY_STRING": "token=xyz"}, None) == "xyz"

    def test_auth_payload_fallback(self):
        assert extract_token({}, {"token": "from-auth"}) == "from-auth"

    def test_query_string_wins_over_auth(self):
        environ = {"QUERY_STRING": "token=q"}
        assert extract_token(environ, {"token": "a"}) == "q"

    def test_missing(self):
        assert extract_token({"QUERY_STRING": "EIO=4"}, None) is None
        assert extract_token({}, {"token": ""}) is None
        assert extract_token({}, "not-a-dict") is None


class TestAuthenticateToken:
    def test_valid_access_token(self):
        assert authenticate_token(access_token(7)) == 7  # noqa: PLR2004

    def test_expired_token_is_reported_as_expired(self):
        token = access_token(lifetime=-timedelta(minutes=5))
        with pytest.raises(HandshakeRejected) as exc:
            authenticate_token(token)
        assert exc.value.reason == REASON_EXPIRED

    def test_garbage(self):
        with pytest.raises(HandshakeRejected) as exc:
            authenticate_token("not.a.jwt")
        assert exc.value.reason == REASON_UNAUTHORIZED

    def test_tampered_signature(self):
        token = access_token()
        with pytest.raises(HandshakeRejected) as exc:
            authenticate_token(token[:-2] + "xx")
        assert exc.value.reason == REASON_UNAUTHORIZED

    def test_refresh_token_is_not_accepted(self):
        refresh = RefreshToken()
        refresh["user_id"] = 7
        with pytest.raises(HandshakeRejected) as exc:
            authenticate_token(str(refresh))
        assert exc.value.reason == REASON_UNAUTHORIZED

    def test_token_without_user_claim(self):
        with pytest.raises(HandshakeRejected) as exc:
            authenticate_token(access_token(user_id=None))
        assert exc.value.reason == REASON_UNAUTHORIZED


class TestConnectHandler:
    def test_valid_token_registers_connection(self, wired):
        handlers, hub, transport = wired
        environ = {"QUERY_STRING": f"token={access_token(5)}"}

        asyncio.run(handlers["connect"]("s1", environ, None))

        assert hub.registry.user_for("s1") == 5  # noqa: PLR2004
        assert hub.presence.is_online(5)
        assert transport.received("s1") == [("online_members", [5])]

    def test_missing_token_is_refused(self, wired):
        handlers, hub, transport = wired
        with pytest.raises(socketio.exceptions.ConnectionRefusedError) as exc:
            asyncio.run(handlers["connect"]("s1", {}, None))
        assert exc.value.error_args["message"] == REASON_UNAUTHORIZED
        assert len(hub.registry) == 0
        assert transport.emitted == []

    def test_expired_token_is_refused_with_reason(self, wired):
        handlers, hub, _ = wired
        token = access_token(lifetime=-timedelta(seconds=1))
        with pytest.raises(socketio.exceptions.ConnectionRefusedError) as exc:
            asyncio.run(handlers["connect"]("s1", {}, {"token": token}))
        assert exc.value.error_args["message"] == REASON_EXPIRED
        assert not hub.presence.online_users()

    def test_disconnect_handler_releases_presence(self, wired):
        handlers, hub, transport = wired
        asyncio.run(handlers["connect"]("s1", {}, {"token": access_token(5)}))
        asyncio.run(handlers["disconnect"]("s1", "client disconnect"))

        assert len(hub.registry) == 0
        assert not hub.presence.is_online(5)
        assert transport.events("member_disconnected")
