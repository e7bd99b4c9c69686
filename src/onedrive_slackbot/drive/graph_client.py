from __future__ import annotations

import logging
from typing import Any

import requests

from onedrive_slackbot.config import DEFAULT_GRAPH_BASE_URL
from onedrive_slackbot.models import DriveItem
from onedrive_slackbot.utils.url_utils import drive_item_path, odata_quote

from .base import DriveClient, DriveError

logger = logging.getLogger(__name__)

_MAX_PAGES = 100


class GraphDriveClient(DriveClient):
    """Read-only listing client for a OneDrive drive via Microsoft Graph.

    The caller supplies a valid bearer token; this client never refreshes it.
    """

    def __init__(
        self,
        access_token: str,
        *,
        drive_path: str = "/me/drive",
        base_url: str = DEFAULT_GRAPH_BASE_URL,
        timeout_seconds: int = 30,
    ) -> None:
        self.access_token = access_token
        self.drive_url = f"{base_url.rstrip('/')}/{drive_path.strip('/')}"
        self.timeout_seconds = timeout_seconds

    def list_children(self, folder_id: str | None) -> list[DriveItem]:
        return self._list(folder_id, params=None)

    def find_children_by_name(self, folder_id: str | None, name: str) -> list[DriveItem]:
        items = self._list(folder_id, params={"$filter": f"name eq {odata_quote(name)}"})
        # the service-side filter is case-insensitive
        return [item for item in items if item.name == name]

    def _list(self, folder_id: str | None, params: dict[str, str] | None) -> list[DriveItem]:
        url: str | None = f"{self.drive_url}{drive_item_path(folder_id)}"
        items: list[DriveItem] = []
        pages = 0

        logger.debug("Listing children of %s", folder_id or "root")
        while url and pages < _MAX_PAGES:
            payload = self._get_json(url, params)
            # nextLink already carries the original query string
            params = None
            pages += 1

            values = payload.get("value") or []
            if not isinstance(values, list):
                raise DriveError(f"Unexpected listing payload from {url}")
            for value in values:
                if isinstance(value, dict):
                    items.append(DriveItem.from_graph(value))

            next_link = payload.get("@odata.nextLink")
            url = str(next_link) if next_link else None

        if url:
            logger.warning("Stopped following pagination after %d pages for %s", pages, folder_id)

        logger.debug("Got %d items from %s", len(items), folder_id or "root")
        return items

    def _get_json(self, url: str, params: dict[str, str] | None) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }
        try:
            response = requests.get(
                url,
                params=params,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise DriveError(f"Graph request failed for {url}: {exc}") from exc

        if response.status_code >= 400:
            raise DriveError(
                f"Graph API returned {response.status_code} for {url}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise DriveError(f"Graph API returned invalid JSON for {url}") from exc

        if not isinstance(payload, dict):
            raise DriveError(f"Unexpected Graph API response for {url}")
        return payload
