"""How to reach the server: local socket, token, or username/password.

Resolved once from :class:`~plugintools.config.Settings` and handed to
:meth:`MattermostClient.connect`. Precedence is local socket, then token,
then credentials.
"""
from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from typing import Callable, Union

from ..config import Settings
from ..errors import ErrorKind, PluginctlError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalSocket:
    """Local mode: unauthenticated admin access over a unix domain socket."""

    path: str


@dataclass(frozen=True)
class BearerToken:
    url: str
    token: str = field(repr=False)


@dataclass(frozen=True)
class LoginCreds:
    url: str
    username: str
    password: str = field(repr=False)


Transport = Union[LocalSocket, BearerToken, LoginCreds]


def socket_reachable(path: str) -> bool:
    """Return True when something accepts connections on the unix socket ``path``."""
    if not hasattr(socket, "AF_UNIX"):
        return False
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.settimeout(1.0)
        sock.connect(path)
    except OSError:
        return False
    finally:
        sock.close()
    return True


def resolve_transport(
    settings: Settings,
    probe: Callable[[str], bool] = socket_reachable,
) -> Transport:
    """Pick the transport the environment asks for.

    Raises PluginctlError(CONFIG_INVALID) when local mode is unavailable and
    no site URL or no credentials are configured.
    """
    socket_path = settings.socket_path
    if probe(socket_path):
        logger.info("Connecting using local mode over %s", socket_path)
        return LocalSocket(socket_path)

    if settings.localsocketpath:
        logger.info(
            "No socket found at %s for local mode deployment. "
            "Attempting to authenticate with credentials.",
            socket_path,
        )

    site_url = settings.servicesettings_siteurl.rstrip("/")
    if not site_url:
        raise PluginctlError(ErrorKind.CONFIG_INVALID, "MM_SERVICESETTINGS_SITEURL is not set")

    if settings.admin_token:
        logger.info("Authenticating using token against %s.", site_url)
        return BearerToken(site_url, settings.admin_token)

    if settings.admin_username and settings.admin_password:
        logger.info("Authenticating as %s against %s.", settings.admin_username, site_url)
        return LoginCreds(site_url, settings.admin_username, settings.admin_password)

    raise PluginctlError(
        ErrorKind.CONFIG_INVALID,
        "one of MM_ADMIN_TOKEN or MM_ADMIN_USERNAME/MM_ADMIN_PASSWORD must be defined",
    )
