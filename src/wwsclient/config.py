"""
Client configuration.

Settings can be built in code or loaded from a YAML file:

    server: pubavo1.wr.usgs.gov
    port: 16022
    idle_timeout: 30
    connect_timeout: 10
    close_grace: 2

The keys may also sit under a top-level ``wwsclient:`` section.
"""

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from wwsclient.core.errors import ConfigurationError, ErrorCodes
from wwsclient.core.tcp_connection import DEFAULT_CLOSE_GRACE, DEFAULT_IDLE_TIMEOUT

logger = logging.getLogger(__name__)

# Default Winston wave server port
DEFAULT_PORT = 16022


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable configuration for a wave server client.

    Attributes:
        server: Server host name or address
        port: Server port (default: 16022)
        idle_timeout: Seconds without traffic before a connection is faulted
                      (default: 30)
        connect_timeout: Seconds allowed for connect; defaults to idle_timeout
        close_grace: Seconds close() waits for the reader thread (default: 2)

    Example:
        >>> config = ClientConfig("localhost", 16022, idle_timeout=-1)
        >>> valid, errors = config.validate()
        >>> errors
        ['Idle timeout must be positive: -1']
    """

    server: str
    port: int = DEFAULT_PORT
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT
    connect_timeout: Optional[float] = None
    close_grace: float = DEFAULT_CLOSE_GRACE

    @property
    def effective_connect_timeout(self) -> float:
        return self.connect_timeout if self.connect_timeout is not None else self.idle_timeout

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate the configuration.

        Returns:
            Tuple of (is_valid, list_of_error_messages)
        """
        errors = []

        if not isinstance(self.server, str) or not self.server.strip():
            errors.append(f"Server address must not be empty: {self.server!r}")

        if isinstance(self.port, bool) or not isinstance(self.port, int):
            errors.append(f"Port must be an integer: {self.port!r}")
        elif not (1 <= self.port <= 65535):
            errors.append(f"Port out of range (1-65535): {self.port}")

        if not self._is_positive(self.idle_timeout):
            errors.append(f"Idle timeout must be positive: {self.idle_timeout}")

        if self.connect_timeout is not None and not self._is_positive(self.connect_timeout):
            errors.append(f"Connect timeout must be positive: {self.connect_timeout}")

        if not isinstance(self.close_grace, (int, float)) or self.close_grace < 0:
            errors.append(f"Close grace must not be negative: {self.close_grace}")

        return (len(errors) == 0, errors)

    def require_valid(self) -> "ClientConfig":
        """
        Raises:
            ConfigurationError: If validate() reports errors
        """
        valid, errors = self.validate()
        if not valid:
            raise ConfigurationError(
                "Invalid client configuration: " + "; ".join(errors),
                error_code=ErrorCodes.CONFIG_INVALID,
                context={'errors': errors}
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """
        Build a config from a mapping; unknown keys are ignored with a warning.

        Raises:
            ConfigurationError: If the mapping has no server or values are invalid
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(data).__name__}")

        if 'wwsclient' in data and isinstance(data['wwsclient'], dict):
            data = data['wwsclient']

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {unknown}")

        if not data.get('server'):
            raise ConfigurationError("Configuration has no server", setting_name='server')

        return cls(**{k: v for k, v in data.items() if k in known}).require_valid()

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ClientConfig":
        """
        Load a config from a YAML file.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                error_code=ErrorCodes.CONFIG_NOT_FOUND,
                setting_name=str(path)
            )
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read configuration {path}: {e}", cause=e) from e

        logger.debug(f"Loaded configuration from {path}")
        return cls.from_dict(data)

    @staticmethod
    def _is_positive(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0
