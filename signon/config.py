"""Configuration management for the sign-on service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

SIGNUP_MODE_ID_TOKEN = "id-token"
SIGNUP_MODE_CODE_EXCHANGE = "code-exchange"
SIGNUP_MODES = (SIGNUP_MODE_ID_TOKEN, SIGNUP_MODE_CODE_EXCHANGE)

DEFAULT_REDIRECT_URI = "postmessage"
DEFAULT_SESSION_TTL = 3600

# Setting name -> environment variables, first one set wins.
_ENV_KEYS: Dict[str, tuple] = {
    "secret": ("SIGNON_SECRET", "SECRET"),
    "google_client_id": ("GOOGLE_OAUTH_CLIENT_ID", "OAUTH_CLIENT_ID"),
    "google_client_secret": ("GOOGLE_OAUTH_CLIENT_SECRET",),
    "google_redirect_uri": ("GOOGLE_OAUTH_REDIRECT_URI",),
    "signup_mode": ("SIGNON_SIGNUP_MODE",),
    "database_path": ("SIGNON_DB_PATH",),
    "session_ttl_seconds": ("SIGNON_SESSION_TTL",),
}


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup."""

    secret: Optional[str] = None
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_redirect_uri: str = DEFAULT_REDIRECT_URI
    signup_mode: str = SIGNUP_MODE_ID_TOKEN
    database_path: Optional[Path] = None
    session_ttl_seconds: int = DEFAULT_SESSION_TTL

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""

        unknown = set(data.keys()) - set(_ENV_KEYS)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        signup_mode = str(data.get("signup_mode") or SIGNUP_MODE_ID_TOKEN).strip().lower()
        if signup_mode not in SIGNUP_MODES:
            raise ValueError(
                f"signup_mode must be one of {', '.join(SIGNUP_MODES)} (got '{signup_mode}')"
            )

        raw_ttl = data.get("session_ttl_seconds", DEFAULT_SESSION_TTL)
        try:
            ttl = int(str(raw_ttl).strip())
        except ValueError as exc:
            raise ValueError(f"session_ttl_seconds must be an integer (got '{raw_ttl}')") from exc
        if ttl <= 0:
            raise ValueError("session_ttl_seconds must be positive")

        database_path = None
        raw_db = data.get("database_path")
        if raw_db:
            candidate = Path(str(raw_db)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)

        return Settings(
            secret=_optional_str(data.get("secret")),
            google_client_id=_optional_str(data.get("google_client_id")),
            google_client_secret=_optional_str(data.get("google_client_secret")),
            google_redirect_uri=_optional_str(data.get("google_redirect_uri")) or DEFAULT_REDIRECT_URI,
            signup_mode=signup_mode,
            database_path=database_path,
            session_ttl_seconds=ttl,
        )

    def require_secret(self) -> str:
        if not self.secret:
            raise ValueError("A signing secret must be configured (set SIGNON_SECRET)")
        return self.secret


def _optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def load_config_file(config_path: Path) -> Dict[str, object]:
    """Load raw settings from a YAML file."""
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping of settings")
    return raw


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    *,
    config_path: Optional[Path] = None,
) -> Settings:
    """Build settings from an optional YAML file overlaid with environment variables."""

    env = os.environ if environ is None else environ

    data: Dict[str, object] = {}
    base_path: Path | None = None
    path = config_path or _config_path_from_env(env)
    if path is not None:
        data.update(load_config_file(path))
        base_path = path.parent

    for key, names in _ENV_KEYS.items():
        for name in names:
            value = env.get(name)
            if value:
                data[key] = value
                break

    return Settings.from_dict(data, base_path=base_path)


def _config_path_from_env(env: Mapping[str, str]) -> Optional[Path]:
    raw = env.get("SIGNON_CONFIG")
    if not raw:
        return None
    return Path(raw).expanduser().resolve(strict=False)


__all__ = [
    "DEFAULT_REDIRECT_URI",
    "DEFAULT_SESSION_TTL",
    "SIGNUP_MODES",
    "SIGNUP_MODE_CODE_EXCHANGE",
    "SIGNUP_MODE_ID_TOKEN",
    "Settings",
    "load_config_file",
    "load_settings",
]
