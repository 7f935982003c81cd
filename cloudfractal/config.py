"""
Runtime settings for the renderer, the web server and the CLI.

Settings are read from ``CLOUDFRACTAL_*`` environment variables.
"""

import os
import logging
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Mapping, Optional

from .core.parameters import DEFAULT_MAX_ITERATIONS_LIMIT, DEFAULT_MAX_PIXELS
from .errors import InvalidParameter

logger = logging.getLogger(__name__)

ENV_PREFIX = "CLOUDFRACTAL_"


@dataclass(frozen=True)
class Settings:
    """Configuration shared by every render."""

    # Server
    host: str = "127.0.0.1"
    port: int = 8080

    # Performance
    workers: Optional[int] = None  # None means one per CPU
    executor: str = "thread"  # 'thread' or 'process'

    # Resource guards
    max_pixels: int = DEFAULT_MAX_PIXELS
    max_iterations: int = DEFAULT_MAX_ITERATIONS_LIMIT

    def validate(self) -> 'Settings':
        """Validate configuration parameters."""
        if not 0 < self.port < 65536:
            raise InvalidParameter('port', self.port, "must be between 1 and 65535")
        if self.workers is not None and self.workers <= 0:
            raise InvalidParameter('workers', self.workers, "must be positive")
        if self.executor not in ('thread', 'process'):
            raise InvalidParameter('executor', self.executor, "must be 'thread' or 'process'")
        if self.max_pixels <= 0:
            raise InvalidParameter('max_pixels', self.max_pixels, "must be positive")
        if self.max_iterations <= 0:
            raise InvalidParameter('max_iterations', self.max_iterations, "must be positive")
        return self

    def with_overrides(self, **overrides: Any) -> 'Settings':
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes).validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Validated Settings
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        def read(name: str, convert=str):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None or not raw.strip():
                return
            try:
                values[name] = convert(raw.strip())
            except ValueError:
                raise InvalidParameter(ENV_PREFIX + name.upper(), raw, f"expected {convert.__name__}") from None

        read('host')
        read('port', int)
        read('workers', int)
        read('executor', str.lower)
        read('max_pixels', int)
        read('max_iterations', int)

        settings = cls(**values).validate()
        logger.debug(f"Loaded settings: {settings.to_dict()}")
        return settings
