"""HTTP client for the A1 Tools REST API."""

import logging
from typing import Any, Dict, List, Optional

import requests

from .config import ApiConfig
from .models import InboundMessage

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for API failures."""


class NetworkError(ApiError):
    """Timeout, connection failure or HTTP error status."""


class ResponseFormatError(ApiError):
    """The server answered, but not with the JSON shape we expect."""


def _to_int(value: Any) -> int:
    """Parse an id the way the server sends it (int or numeric string), 0 otherwise."""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


class A1ApiClient:
    """Thin wrapper around a requests session with A1 Tools headers."""

    def __init__(self, config: ApiConfig, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: API configuration.
            session: Optional pre-built session (tests inject a fake here).
        """
        self.config = config
        self.session = session or requests.Session()
        self.username: Optional[str] = None

    def _headers(self) -> Dict[str, str]:
        headers = {
            "X-API-Version": self.config.api_version,
            "Accept-Version": self.config.api_version,
            "X-Client-Platform": self.config.client_platform,
        }
        if self.username:
            headers["X-Username"] = self.username
        return headers

    def _decode(self, response, url: str) -> Dict[str, Any]:
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise NetworkError(f"HTTP error from {url}: {e}") from e
        try:
            data = response.json()
        except ValueError as e:
            raise ResponseFormatError(f"Non-JSON response from {url}") from e
        if not isinstance(data, dict):
            raise ResponseFormatError(
                f"Expected a JSON object from {url}, got {type(data).__name__}"
            )
        return data

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        GET a JSON object.

        Raises:
            NetworkError: On timeout, connection failure or HTTP error status.
            ResponseFormatError: If the body is not a JSON object.
        """
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=timeout or self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise NetworkError(f"GET {url} failed: {e}") from e
        return self._decode(response, url)

    def post_json(
        self,
        url: str,
        body: Dict[str, Any],
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """POST a JSON body and return the decoded JSON object."""
        headers = self._headers()
        headers["Content-Type"] = "application/json"
        try:
            response = self.session.post(
                url,
                params=params,
                json=body,
                headers=headers,
                timeout=timeout or self.config.timeout_seconds,
            )
        except requests.RequestException as e:
            raise NetworkError(f"POST {url} failed: {e}") from e
        return self._decode(response, url)

    # Chat endpoints

    def _messages(self, data: Dict[str, Any], url: str) -> List[Dict[str, Any]]:
        if data.get("success") is not True or data.get("messages") is None:
            return []
        messages = data["messages"]
        if not isinstance(messages, list):
            raise ResponseFormatError(f"'messages' from {url} is not a list")
        for msg in messages:
            if not isinstance(msg, dict):
                raise ResponseFormatError(f"Message entry from {url} is not an object")
        return messages

    def fetch_unread_direct(
        self,
        username: str,
        display_names: Optional[Dict[str, str]] = None,
    ) -> List[InboundMessage]:
        """Unread direct messages addressed to ``username``."""
        url = self.config.chat_messages_url
        data = self.get_json(url, params={"action": "get_unread", "username": username})
        display_names = display_names or {}

        result = []
        for msg in self._messages(data, url):
            from_username = msg.get("from_username") or "Unknown"
            result.append(InboundMessage(
                id=_to_int(msg.get("id")),
                from_username=from_username,
                display_name=display_names.get(from_username, from_username),
                text=msg.get("message") or "",
                has_attachment=msg.get("attachment_name") is not None,
            ))
        return result

    def fetch_unread_groups(self, username: str) -> List[InboundMessage]:
        """Unread messages across every group ``username`` belongs to."""
        url = self.config.chat_groups_url
        data = self.get_json(url, params={"action": "get_unread_all", "username": username})

        result = []
        for msg in self._messages(data, url):
            from_username = msg.get("from_username") or ""
            result.append(InboundMessage(
                id=_to_int(msg.get("id")),
                from_username=from_username,
                display_name=msg.get("from_display_name") or from_username,
                text=msg.get("message") or "",
                has_attachment=msg.get("attachment_name") is not None,
                group_id=_to_int(msg.get("group_id")),
                group_name=msg.get("group_name") or "Group",
            ))
        return result

    def fetch_user_display_names(self, requesting_username: str) -> Dict[str, str]:
        """Map of username to "First Last" (or the username when both are blank)."""
        url = self.config.user_management_url
        data = self.get_json(
            url, params={"action": "list", "requesting_username": requesting_username}
        )
        if data.get("success") is not True or data.get("users") is None:
            return {}
        users = data["users"]
        if not isinstance(users, list):
            raise ResponseFormatError(f"'users' from {url} is not a list")

        names = {}
        for user in users:
            if not isinstance(user, dict):
                continue
            username = user.get("username") or ""
            if not username:
                continue
            full_name = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
            names[username] = full_name or username
        logger.debug(f"Loaded {len(names)} user display names")
        return names
