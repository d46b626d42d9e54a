"""Configuration via pydantic-settings, read from MM_* env vars / .env file."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_LOCAL_SOCKET_PATH = "/var/tmp/mattermost_local.socket"


class Settings(BaseSettings):
    """Connection settings for the target Mattermost server."""

    localsocketpath: str = Field(default="", description="Unix socket for local mode")
    servicesettings_siteurl: str = Field(default="", description="Base URL of the server")
    admin_token: str = Field(default="", description="Personal access token of an admin")
    admin_username: str = Field(default="", description="Admin username for login")
    admin_password: str = Field(default="", description="Admin password for login")

    class Config:
        env_prefix = "MM_"
        env_file = ".env"
        extra = "ignore"

    @property
    def socket_path(self) -> str:
        """The local-mode socket, falling back to the server's default location."""
        return self.localsocketpath or DEFAULT_LOCAL_SOCKET_PATH
