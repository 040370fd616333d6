"""Configuration: Pydantic model for console client settings."""

from __future__ import annotations

import json
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_SOCKET_PATH = "/run/console-client.sock"


class ConsoleClientConfig(BaseModel):
    """Top-level console client configuration."""

    socket_path: str = Field(
        default=DEFAULT_SOCKET_PATH,
        description=(
            "Console server socket. A leading '@' selects the Linux abstract "
            "namespace (e.g. '@obmc-console')."
        ),
    )
    buffer_size: int = Field(
        default=4096, gt=0, description="Maximum bytes moved per read"
    )

    @classmethod
    def load(cls, config_path: str | None = None) -> ConsoleClientConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            CONSOLE_CLIENT_SOCKET        - Socket path to connect to
            CONSOLE_CLIENT_BUFFER_SIZE   - Read size in bytes
        """
        # .env values win over stale shell exports
        load_dotenv(override=True)

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        env_socket = os.environ.get("CONSOLE_CLIENT_SOCKET")
        if env_socket:
            config_data["socket_path"] = env_socket

        env_buffer_size = os.environ.get("CONSOLE_CLIENT_BUFFER_SIZE")
        if env_buffer_size:
            config_data["buffer_size"] = int(env_buffer_size)

        return cls.model_validate(config_data)
