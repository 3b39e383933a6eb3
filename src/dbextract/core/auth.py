"""Authentication helpers for Databricks.

This module centralizes creation of a Databricks WorkspaceClient and applies
small but important normalization rules (such as sanitizing the host URL)
to avoid subtle SDK and API issues.
"""

from __future__ import annotations

import re

from databricks.sdk import WorkspaceClient
from databricks.sdk.core import Config

from dbextract.core.errors import ConnectivityError


class AuthError(ConnectivityError):
    """Raised when Databricks authentication fails."""


def _format_auth_error(message: str, profile: str | None) -> str:
    """Return a user-friendly auth error message."""
    login_match = re.search(r"databricks auth login (\S+)", message)
    if login_match:
        cmd = "databricks auth login"
        if profile:
            cmd = f"{cmd} --profile {profile}"
        return (
            "Databricks authentication failed. Your refresh token is invalid.\n"
            f"Re-authenticate with:\n  $ {cmd}"
        )
    return f"Databricks authentication failed: {message}"


def sanitize_host(host: str | None) -> str | None:
    """
    Normalize a Databricks host URL.

    - Removes query strings (e.g. '?o=123456789')
    - Removes trailing slashes
    - Drops a `jdbc:databricks://` prefix and port/path suffix from JDBC URLs
    """
    if not host:
        return host
    if host.startswith("jdbc:databricks://"):
        host = "https://" + host[len("jdbc:databricks://") :].split(";", 1)[0]
        host = re.sub(r":\d+(/.*)?$", "", host)
    host = host.split("?", 1)[0]
    return host.rstrip("/")


def get_client(
    profile: str | None = None,
    *,
    host: str | None = None,
    token: str | None = None,
) -> WorkspaceClient:
    """
    Create and return a configured Databricks WorkspaceClient.

    Explicit host/token win over the profile; without either, the Databricks
    unified authentication chain (~/.databrickscfg or environment variables)
    is used.
    """
    kwargs: dict[str, str] = {}
    if profile:
        kwargs["profile"] = profile
    if host:
        kwargs["host"] = sanitize_host(host)
    if token:
        kwargs["token"] = token
    try:
        cfg = Config(**kwargs)
    except ValueError as exc:
        raise AuthError(_format_auth_error(str(exc), profile)) from exc
    cfg.host = sanitize_host(cfg.host)
    return WorkspaceClient(config=cfg)
