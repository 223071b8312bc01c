"""Okta connector: one coroutine per catalogue operation."""

from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import parse_qs, urlparse

import structlog

from okta_connector.clients.dispatch import DispatchClient, Payload
from okta_connector.clients.exceptions import OktaConnectorError
from okta_connector.config.models import ConnectionConfig
from okta_connector.security.validation import sanitize_log_input

logger = structlog.get_logger(__name__)


def parse_link_header(link_header: str) -> Dict[str, str]:
    """Parse an HTTP Link header.

    Args:
        link_header: Link header value

    Returns:
        Dictionary mapping relation types to URLs
    """
    links = {}
    for link in link_header.split(","):
        parts = link.strip().split(";")
        if len(parts) >= 2:
            url = parts[0].strip().strip("<>")
            for part in parts[1:]:
                if "rel=" in part:
                    rel = part.split("=", 1)[1].strip().strip('"')
                    links[rel] = url
                    break
    return links


class OktaConnector:
    """Named Okta operations on top of a :class:`DispatchClient`.

    Payload arguments are JSON text and are sent unchanged; every method
    returns the raw response body.
    """

    def __init__(self, dispatcher: DispatchClient) -> None:
        self._dispatcher = dispatcher
        self._logger = logger.bind(okta_host=dispatcher.config.host)

    @classmethod
    def from_config(cls, config: ConnectionConfig, **kwargs: Any) -> "OktaConnector":
        """Create a connector with its own dispatch client."""
        return cls(DispatchClient(config, **kwargs))

    async def __aenter__(self) -> "OktaConnector":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._dispatcher.close()

    @property
    def dispatcher(self) -> DispatchClient:
        return self._dispatcher

    async def _call(self, name: str, payload: Payload = None, **arguments: Any) -> str:
        return await self._dispatcher.invoke(name, arguments, payload=payload)

    async def health_check(self) -> bool:
        """Check that the tenant is reachable and the token is accepted.

        Returns:
            True if API is healthy, False otherwise
        """
        try:
            await self.get_user("me")
            return True
        except OktaConnectorError as e:
            self._logger.error("Okta health check failed", error=str(e))
            return False

    # Users

    async def create_user(self, profile: str, activate: Optional[bool] = None) -> str:
        """Create a user. ``activate`` defaults to ``false`` on the wire."""
        return await self._call("createUser", profile=profile, activate=activate)

    async def get_user(self, id: str) -> str:
        return await self._call("getUser", id=id)

    async def list_users(
        self,
        query: Optional[str] = None,
        limit: Optional[int] = None,
        filter: Optional[str] = None,
        after: Optional[str] = None,
    ) -> str:
        """List users.

        Args:
            query: Simple lookup on first name, last name or email (``q``)
            limit: Page size, 10000 unless given
            filter: Filter expression, e.g. ``status eq "ACTIVE"``
            after: Pagination cursor from a previous page's ``next`` link
        """
        return await self._call("listUsers", query=query, limit=limit, filter=filter, after=after)

    async def iter_user_pages(
        self,
        query: Optional[str] = None,
        limit: Optional[int] = None,
        filter: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """Yield raw ``listUsers`` page bodies, following ``rel="next"`` links."""
        after: Optional[str] = None
        page = 0
        while True:
            response = await self._dispatcher.dispatch(
                "listUsers",
                {"query": query, "limit": limit, "filter": filter, "after": after},
            )
            page += 1
            yield response.body

            next_url = parse_link_header(response.headers.get("link", "")).get("next")
            if not next_url:
                break
            cursor = parse_qs(urlparse(next_url).query).get("after")
            if not cursor or cursor[0] == after:
                self._logger.debug(
                    "Stopping user pagination: next link has no new cursor",
                    page=page,
                    next_url=sanitize_log_input(next_url),
                )
                break
            after = cursor[0]
            self._logger.debug("Fetching next user page", page=page + 1)

    async def update_user(self, id: str, profile: str) -> str:
        return await self._call("updateUser", id=id, profile=profile)

    async def get_user_app_links(self, id: str) -> str:
        return await self._call("getUserAppLinks", id=id)

    async def get_user_groups(self, id: str) -> str:
        return await self._call("getUserGroups", id=id)

    # Lifecycle

    async def activate_user(self, id: str, send_email: Optional[bool] = None) -> str:
        """Activate a user; Okta emails the activation link unless ``send_email`` is false."""
        return await self._call("activateUser", id=id, send_email=send_email)

    async def deactivate_user(self, id: str) -> str:
        return await self._call("deactivateUser", id=id)

    async def unlock_user(self, id: str) -> str:
        return await self._call("unlockUser", id=id)

    async def reset_password(self, id: str, send_email: Optional[bool] = None) -> str:
        return await self._call("resetPassword", id=id, send_email=send_email)

    async def expire_password(self, id: str, temp_password: Optional[bool] = None) -> str:
        """Expire a password; with ``temp_password`` Okta returns a temporary one."""
        return await self._call("expirePassword", id=id, temp_password=temp_password)

    async def forgot_password(self, id: str, send_email: Optional[bool] = None) -> str:
        return await self._call("forgotPassword", id=id, send_email=send_email)

    # Credentials

    async def password_recovery(self, id: str, credentials: str) -> str:
        return await self._call("passwordRecovery", id=id, credentials=credentials)

    async def change_password(self, id: str, passwords: str) -> str:
        return await self._call("changePassword", id=id, passwords=passwords)

    async def change_recovery_question(self, id: str, credentials: str) -> str:
        return await self._call("changeRecoveryQuestion", id=id, credentials=credentials)

    # Sessions

    async def authenticate(self, credentials: str) -> str:
        return await self._call("authenticate", credentials=credentials)

    async def create_session(self, session_token: str, additional_fields: Optional[str] = None) -> str:
        return await self._call(
            "createSession", session_token=session_token, additional_fields=additional_fields
        )

    async def extend_session(self, session_id: str) -> str:
        return await self._call("extendSession", session_id=session_id)

    async def close_session(self, session_id: str) -> str:
        return await self._call("closeSession", session_id=session_id)
