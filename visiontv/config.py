"""Configuration management for VisionTV."""

import json
import logging
import os
import time
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/145.0.0.0 Safari/537.36"
)

# Session cookie set captured from a browser; rotates with the upstream deployment.
DEFAULT_FILMIX_COOKIE = (
    "x-a-key=sinatra; minotaurs=WAeThQWgnpYqm287TO84UQ%2BRHWGlEVrIuzxgE42xIDQ%3D; "
    "FILMIXNET=eriurkv36fs65t4ekqsc68rd55; ishimura=fef06ce407e0bc6fa90ba5196af2d24933239a90; "
    "alora=WAeThQWgnpYqm287TO84UQ%2BRHWGlEVrIuzxgE42xIDQ%3D"
)


def get_config_dir() -> Path:
    """Get config directory path."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home()))
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "visiontv"


@dataclass
class SiteCredentials:
    """Cookie/user-agent pair a site session depends on.

    ``expires_at`` is a unix timestamp; ``None`` means the expiry is unknown
    and the credentials are used until the site starts rejecting them.
    """
    cookie: str = DEFAULT_FILMIX_COOKIE
    user_agent: str = DEFAULT_USER_AGENT
    expires_at: float | None = None

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) >= self.expires_at

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SiteCredentials":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class Config:
    """VisionTV configuration."""
    filmix_url: str = "https://filmix.my"
    rezka_url: str = "https://rezka.ag"
    request_timeout: float = 30.0
    max_concurrency: int = 4
    preferred_quality: str = "1080p"
    log_level: str = "INFO"
    rezka_user_agent: str = DEFAULT_USER_AGENT
    filmix_credentials: SiteCredentials = field(default_factory=SiteCredentials)

    def __post_init__(self):
        # attribute path -> (stored value, env value)
        self._env_overrides: dict[tuple[str, ...], tuple[Any, str]] = {}

    def apply_env(self) -> "Config":
        """Let environment variables override stored credentials and user agents.

        Overrides live only in memory; ``to_dict`` hands back the stored
        values unless the setting was changed after the override.
        """
        cookie = os.environ.get("VISIONTV_FILMIX_COOKIE")
        if cookie:
            self._override(("filmix_credentials", "cookie"), cookie)
        user_agent = os.environ.get("VISIONTV_USER_AGENT")
        if user_agent:
            self._override(("filmix_credentials", "user_agent"), user_agent)
            self._override(("rezka_user_agent",), user_agent)
        return self

    def _override(self, path: tuple[str, ...], value: str) -> None:
        *parents, attr = path
        target = self
        for name in parents:
            target = getattr(target, name)
        stored = self._env_overrides[path][0] if path in self._env_overrides else getattr(target, attr)
        self._env_overrides[path] = (stored, value)
        setattr(target, attr, value)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form without environment overrides."""
        data = asdict(self)
        for path, (stored, value) in self._env_overrides.items():
            *parents, attr = path
            node = data
            for name in parents:
                node = node[name]
            if node[attr] == value:
                node[attr] = stored
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        credentials = values.pop("filmix_credentials", None)
        config = cls(**values)
        if isinstance(credentials, dict):
            config.filmix_credentials = SiteCredentials.from_dict(credentials)
        return config


_config: Config | None = None


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file."""
    global _config
    if _config is not None and path is None:
        return _config

    config_file = path or get_config_dir() / "config.json"

    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = Config.from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Failed to load config %s: %s", config_file, e)
            config = Config()
    else:
        config = Config()

    config.apply_env()
    if path is None:
        _config = config
    return config


def save_config(config: Config, path: Path | None = None) -> None:
    """Save configuration to file."""
    global _config
    _config = config

    config_file = path or get_config_dir() / "config.json"
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)


def get_config() -> Config:
    """Get current configuration."""
    return load_config()


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config
    _config = None
