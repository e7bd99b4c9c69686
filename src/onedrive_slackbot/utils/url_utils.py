from __future__ import annotations

from urllib.parse import quote, urlsplit, urlunsplit


def parent_url(url: str) -> str:
    """Return the URL of the folder containing ``url``.

    SharePoint/OneDrive web links look like
    ``https://tenant.sharepoint.com/.../Folder/file.pdf``; dropping the last
    path segment yields a link to the folder. Query and fragment are dropped.
    """
    value = (url or "").strip()
    if not value:
        return value

    parsed = urlsplit(value)
    if not parsed.scheme or not parsed.netloc:
        return value.rsplit("/", 1)[0] if "/" in value else value

    path = parsed.path.rstrip("/")
    if "/" in path:
        path = path.rsplit("/", 1)[0]
    return urlunsplit((parsed.scheme, parsed.netloc, path, "", ""))


def odata_quote(value: str) -> str:
    """Quote a literal for use inside an OData ``$filter`` string."""
    return "'" + value.replace("'", "''") + "'"


def drive_item_path(folder_id: str | None) -> str:
    if folder_id is None:
        return "/root/children"
    return f"/items/{quote(folder_id, safe='!')}/children"
