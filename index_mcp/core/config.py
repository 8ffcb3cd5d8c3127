# index_mcp/core/config.py

import threading
from typing import List, Optional, Set

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from index_mcp.core.exceptions import ConfigurationError

DEFAULT_PORT = 29170
MIN_HISTORY_SIZE = 10

_settings_lock = threading.Lock()


class Settings(BaseSettings):
    """Server Settings"""

    # Server identification
    SERVER_NAME: str = "index-mcp"
    SERVER_VERSION: str = "1.0.0"
    PROTOCOL_VERSION: str = "2024-11-05"
    ENVIRONMENT: str = "development"  # development, production

    # Transport
    HOST: str = "127.0.0.1"
    PORT: Optional[int] = Field(default=None, ge=1, le=65535)  # None = DEFAULT_PORT
    ENDPOINT_PATH: str = "/index-mcp"
    SSE_KEEPALIVE_SECONDS: float = 15.0
    STARTUP_TIMEOUT_SECONDS: float = 10.0

    # Tools & history
    MAX_HISTORY_SIZE: int = Field(default=100, ge=MIN_HISTORY_SIZE)
    DISABLED_TOOLS: Set[str] = Field(default_factory=set)
    SYNC_EXTERNAL_CHANGES: bool = False

    # Projects served by the CLI entry point
    PROJECT_ROOTS: List[str] = Field(default_factory=list)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # json or text

    model_config = {
        "env_file": ".env",
        "env_prefix": "INDEX_MCP_",
        "case_sensitive": True,
        "extra": "ignore",
        "validate_assignment": True,
    }

    @property
    def sse_path(self) -> str:
        return f"{self.ENDPOINT_PATH}/sse"

    def effective_port(self) -> int:
        return self.PORT if self.PORT is not None else DEFAULT_PORT

    def is_tool_enabled(self, tool_name: str) -> bool:
        return tool_name not in self.DISABLED_TOOLS

    def set_tool_enabled(self, tool_name: str, enabled: bool) -> None:
        """
        Enable or disable a tool

        The disabled set is replaced rather than mutated so requests that
        are reading it concurrently always see a complete set.
        """
        with _settings_lock:
            disabled = set(self.DISABLED_TOOLS)
            if enabled:
                disabled.discard(tool_name)
            else:
                disabled.add(tool_name)
            self.DISABLED_TOOLS = disabled


def load_settings(**overrides) -> Settings:
    """
    Build settings from the environment and .env file

    Args:
        **overrides: Field values taking precedence over the environment

    Returns:
        Settings instance

    Raises:
        ConfigurationError: a value from the environment or overrides is invalid
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = ", ".join(".".join(str(loc) for loc in err["loc"]) for err in e.errors())
        raise ConfigurationError(
            f"Invalid configuration: {fields}",
            details={"errors": e.errors(include_url=False)}
        ) from e
