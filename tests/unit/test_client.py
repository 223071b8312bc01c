"""Unit tests for the OktaConnector facade."""

import httpx
import pytest
from structlog.testing import capture_logs

from okta_connector.clients.okta import OktaConnector, parse_link_header

USER_ID = "00ub0oNGTSWTBKOLGLNR"
PROFILE = '{"profile": {"login": "dade.murphy@example.com"}}'


@pytest.fixture
def connector(client):
    return OktaConnector(client)


def test_parse_link_header():
    header = (
        '<https://example.okta.com/api/v1/users?limit=200>; rel="self", '
        '<https://example.okta.com/api/v1/users?after=00ubfjQEMYBLRUWIEDKK&limit=200>; rel="next"'
    )
    links = parse_link_header(header)

    assert links["self"] == "https://example.okta.com/api/v1/users?limit=200"
    assert links["next"] == "https://example.okta.com/api/v1/users?after=00ubfjQEMYBLRUWIEDKK&limit=200"
    assert parse_link_header("") == {}


@pytest.mark.asyncio
class TestOktaConnector:
    """Each facade method dispatches the matching catalogue operation."""

    @pytest.mark.parametrize(
        "method_name,kwargs,http_method,path,query,body",
        [
            ("create_user", {"profile": PROFILE, "activate": True}, "POST", "/users", {"activate": "true"}, PROFILE),
            ("get_user", {"id": USER_ID}, "GET", f"/users/{USER_ID}", {}, ""),
            ("list_users", {"query": "dade"}, "GET", "/users", {"q": "dade", "limit": "10000"}, ""),
            ("update_user", {"id": USER_ID, "profile": PROFILE}, "PUT", f"/users/{USER_ID}", {}, PROFILE),
            ("get_user_app_links", {"id": USER_ID}, "GET", f"/users/{USER_ID}/appLinks", {}, ""),
            ("get_user_groups", {"id": USER_ID}, "GET", f"/users/{USER_ID}/groups", {}, ""),
            ("activate_user", {"id": USER_ID}, "POST", f"/users/{USER_ID}/lifecycle/activate", {"sendEmail": "true"}, ""),
            ("deactivate_user", {"id": USER_ID}, "POST", f"/users/{USER_ID}/lifecycle/deactivate", {}, ""),
            ("unlock_user", {"id": USER_ID}, "POST", f"/users/{USER_ID}/lifecycle/unlock", {}, ""),
            ("reset_password", {"id": USER_ID, "send_email": False}, "POST", f"/users/{USER_ID}/lifecycle/reset_password", {"sendEmail": "false"}, ""),
            ("expire_password", {"id": USER_ID}, "POST", f"/users/{USER_ID}/lifecycle/expire_password", {"tempPassword": "false"}, ""),
            ("forgot_password", {"id": USER_ID}, "POST", f"/users/{USER_ID}/lifecycle/forgot_password", {"sendEmail": "true"}, ""),
            ("password_recovery", {"id": USER_ID, "credentials": "{}"}, "POST", f"/users/{USER_ID}/credentials/forgot_password", {}, "{}"),
            ("change_password", {"id": USER_ID, "passwords": "{}"}, "POST", f"/users/{USER_ID}/credentials/change_password", {}, "{}"),
            ("change_recovery_question", {"id": USER_ID, "credentials": "{}"}, "POST", f"/users/{USER_ID}/credentials/change_recovery_question", {}, "{}"),
            ("authenticate", {"credentials": "{}"}, "POST", "/sessions", {}, "{}"),
            ("create_session", {"session_token": "{}", "additional_fields": "cookieToken"}, "POST", "/sessions", {"additionalFields": "cookieToken"}, "{}"),
            ("extend_session", {"session_id": "101yT5gG"}, "PUT", "/sessions/101yT5gG", {}, ""),
            ("close_session", {"session_id": "101yT5gG"}, "PUT", "/sessions/101yT5gG", {}, ""),
        ],
    )
    async def test_operation_mapping(self, connector, handler, method_name, kwargs, http_method, path, query, body):
        result = await getattr(connector, method_name)(**kwargs)

        request = handler.last_request
        assert result == "{}"
        assert request.method == http_method
        assert request.url.path == "/api/v1" + path
        assert dict(request.url.params) == query
        assert request.content == body.encode("utf-8")

    async def test_iter_user_pages_follows_next_link(self, make_client):
        requests = []

        def respond(request):
            requests.append(request)
            if "after" not in request.url.params:
                link = '<https://example.okta.com/api/v1/users?after=cursor1&limit=200>; rel="next"'
                return httpx.Response(200, text='[{"id": "a"}]', headers={"Link": link})
            return httpx.Response(200, text='[{"id": "b"}]')

        connector = OktaConnector(make_client(respond))
        pages = [page async for page in connector.iter_user_pages(limit=200)]

        assert pages == ['[{"id": "a"}]', '[{"id": "b"}]']
        assert requests[1].url.params["after"] == "cursor1"
        assert requests[1].url.params["limit"] == "200"

    async def test_iter_user_pages_stops_without_cursor(self, make_client):
        link = '<https://example.okta.com/api/v1/users?limit=200>; rel="next"'

        def respond(request):
            return httpx.Response(200, text="[]", headers={"Link": link})

        with capture_logs() as logs:
            connector = OktaConnector(make_client(respond))
            pages = [page async for page in connector.iter_user_pages(limit=200)]

        assert pages == ["[]"]
        stop_events = [entry for entry in logs if entry["event"].startswith("Stopping user pagination")]
        assert len(stop_events) == 1
        assert stop_events[0]["log_level"] == "debug"
        assert stop_events[0]["page"] == 1

    async def test_health_check_success(self, connector, handler):
        assert await connector.health_check() is True
        assert handler.last_request.url.path == "/api/v1/users/me"

    async def test_health_check_failure(self, make_client, recording_handler):
        connector = OktaConnector(make_client(recording_handler(401, '{"errorCode":"E0000011"}')))
        assert await connector.health_check() is False

    async def test_context_manager_closes_dispatcher(self, connection_config):
        async with OktaConnector.from_config(connection_config) as connector:
            assert connector.dispatcher.config is connection_config
        assert connector.dispatcher._client.is_closed is True
