"""Client configuration for pynt4."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pynt4._constants import DEFAULT_NT4_PORT
from pynt4.exceptions import Nt4ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env: Mapping[str, str], key: str, cast: type) -> Any:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return cast(raw)
    except ValueError as exc:
        raise Nt4ConfigError(f"{key} must be a {cast.__name__}, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class Nt4Config:
    """Client configuration.

    Parameters
    ----------
    server_host : str
        NetworkTables server address (robot or simulator).
    server_port : int
        NT4 WebSocket port. Defaults to ``5810``.
    client_name : str
        Name announced in the connection URL (``/nt/<client_name>``).
    reconnect_delay : float
        Seconds to wait before reconnecting after the connection drops.
    connect_timeout : float
        Seconds allowed for the WebSocket handshake.
    strict_value_kinds : bool
        Raise :class:`~pynt4.exceptions.TopicKindMismatchError` when a topic
        receives a value of a different kind than its first write, instead of
        logging and dropping it.
    """

    server_host: str = "127.0.0.1"
    server_port: int = DEFAULT_NT4_PORT
    client_name: str = "pynt4"
    reconnect_delay: float = 1.0
    connect_timeout: float = 5.0
    strict_value_kinds: bool = False

    def __post_init__(self) -> None:
        if not self.server_host.strip():
            raise Nt4ConfigError("server_host must be non-empty")
        if not 0 < self.server_port < 65536:
            raise Nt4ConfigError(f"server_port out of range: {self.server_port}")
        if self.reconnect_delay < 0:
            raise Nt4ConfigError("reconnect_delay must be >= 0")

    @property
    def url(self) -> str:
        """WebSocket URL of the NT4 endpoint."""
        return f"ws://{self.server_host}:{self.server_port}/nt/{self.client_name}"

    @classmethod
    def from_env(cls, **overrides: Any) -> Nt4Config:
        """Create configuration from environment variables.

        Reads ``NT4_SERVER_HOST``, ``NT4_SERVER_PORT``, ``NT4_CLIENT_NAME``,
        ``NT4_RECONNECT_DELAY``, ``NT4_CONNECT_TIMEOUT`` and
        ``NT4_STRICT_VALUE_KINDS``. Explicit keyword arguments override
        environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        host = env.get("NT4_SERVER_HOST")
        if host is not None:
            config_kwargs["server_host"] = host
        name = env.get("NT4_CLIENT_NAME")
        if name is not None:
            config_kwargs["client_name"] = name

        port = _env_number(env, "NT4_SERVER_PORT", int)
        if port is not None:
            config_kwargs["server_port"] = port
        delay = _env_number(env, "NT4_RECONNECT_DELAY", float)
        if delay is not None:
            config_kwargs["reconnect_delay"] = delay
        timeout = _env_number(env, "NT4_CONNECT_TIMEOUT", float)
        if timeout is not None:
            config_kwargs["connect_timeout"] = timeout

        if "strict_value_kinds" not in overrides:
            config_kwargs["strict_value_kinds"] = _env_bool(env.get("NT4_STRICT_VALUE_KINDS"), False)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
