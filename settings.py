from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from errors import ConfigurationError


_APP_ENV_ENV = "APP_ENV"
_HOST_ENV = "HOST"
_PORT_ENV = "PORT"
_CORS_ORIGINS_ENV = "CORS_ORIGINS"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_STORE_BACKEND_ENV = "STORE_BACKEND"
_STORE_ROOT_ENV = "STORE_ROOT_PATH"
_MEMORY_STORE_PATH_ENV = "MOCK_RTDB_PERSISTENCE_PATH"
_DATABASE_URL_ENV = "FIREBASE_DATABASE_URL"

# Service-account field name -> environment variable.
_SERVICE_ACCOUNT_ENV = {
    "type": "FIREBASE_TYPE",
    "project_id": "FIREBASE_PROJECT_ID",
    "private_key_id": "FIREBASE_PRIVATE_KEY_ID",
    "private_key": "FIREBASE_PRIVATE_KEY",
    "client_email": "FIREBASE_CLIENT_EMAIL",
    "client_id": "FIREBASE_CLIENT_ID",
    "auth_uri": "FIREBASE_AUTH_URI",
    "token_uri": "FIREBASE_TOKEN_URI",
    "auth_provider_x509_cert_url": "FIREBASE_AUTH_PROVIDER_X509_CERT_URL",
    "client_x509_cert_url": "FIREBASE_CLIENT_X509_CERT_URL",
    "universe_domain": "FIREBASE_UNIVERSE_DOMAIN",
}

STORE_BACKENDS = ("firebase", "memory")


@dataclass(frozen=True)
class FirebaseSettings:
    database_url: Optional[str] = None
    service_account: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def project_id(self) -> Optional[str]:
        return self.service_account.get("project_id")

    @property
    def client_email(self) -> Optional[str]:
        return self.service_account.get("client_email")

    @property
    def has_private_key(self) -> bool:
        return bool(self.service_account.get("private_key"))

    def credentials_info(self) -> Dict[str, Any]:
        """Return the service-account mapping expected by ``credentials.Certificate``.

        Raises ``ConfigurationError`` when a field required to authenticate
        against the Realtime Database is missing.
        """
        missing = [
            _SERVICE_ACCOUNT_ENV[name]
            for name in ("private_key", "project_id", "client_email")
            if not self.service_account.get(name)
        ]
        if not self.database_url:
            missing.append(_DATABASE_URL_ENV)
        if missing:
            raise ConfigurationError(
                f"Missing Firebase configuration: {', '.join(missing)}"
            )

        info = {key: value for key, value in self.service_account.items() if value}
        info.setdefault("type", "service_account")
        info.setdefault("token_uri", "https://oauth2.googleapis.com/token")
        return info


@dataclass(frozen=True)
class Settings:
    app_env: str
    host: str
    port: int
    cors_origins: Tuple[str, ...]
    log_level: str
    store_backend: str
    store_root_path: str
    memory_store_path: Optional[str]
    firebase: FirebaseSettings

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def allows_any_origin(self) -> bool:
        return "*" in self.cors_origins


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_port(default: int) -> int:
    value = os.getenv(_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def _read_origins(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_CORS_ORIGINS_ENV)
    if value is None:
        return default
    origins = tuple(part.strip() for part in value.split(",") if part.strip())
    return origins or default


def _read_store_backend(default: str) -> str:
    candidate = _read_str_env(_STORE_BACKEND_ENV, default).lower()
    if candidate not in STORE_BACKENDS:
        raise ConfigurationError(
            f"Unsupported {_STORE_BACKEND_ENV} {candidate!r}; "
            f"expected one of: {', '.join(STORE_BACKENDS)}"
        )
    return candidate


def clean_private_key(value: Optional[str]) -> Optional[str]:
    """Undo the quoting and newline escaping that env files apply to PEM keys."""
    if value is None:
        return None
    candidate = value.strip()
    if len(candidate) >= 2 and candidate.startswith('"') and candidate.endswith('"'):
        candidate = candidate[1:-1]
    candidate = candidate.replace("\\n", "\n")
    return candidate or None


def _read_firebase_settings() -> FirebaseSettings:
    account = {
        name: _read_optional_env(env_name) for name, env_name in _SERVICE_ACCOUNT_ENV.items()
    }
    account["private_key"] = clean_private_key(os.getenv(_SERVICE_ACCOUNT_ENV["private_key"]))
    return FirebaseSettings(
        database_url=_read_optional_env(_DATABASE_URL_ENV),
        service_account=account,
    )


@lru_cache
def get_settings() -> Settings:
    app_env = _read_str_env(_APP_ENV_ENV, "development").lower()
    if app_env != "production":
        load_dotenv()
        app_env = _read_str_env(_APP_ENV_ENV, "development").lower()

    return Settings(
        app_env=app_env,
        host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        port=_read_port(3000),
        cors_origins=_read_origins(("http://localhost:3000",)),
        log_level=_read_log_level("INFO"),
        store_backend=_read_store_backend("firebase"),
        store_root_path=_read_str_env(_STORE_ROOT_ENV, "Tambak").strip("/"),
        memory_store_path=_read_optional_env(_MEMORY_STORE_PATH_ENV),
        firebase=_read_firebase_settings(),
    )
