import os
from typing import List

REQUIRED_GATEWAY_ENV = ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY")


def _require_env(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        raise RuntimeError(f"Missing gateway environment variable: {name}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]


def split_csv(raw: str, *, default: List[str]) -> List[str]:
    parts = [p.strip() for p in (raw or "").split(",")]
    return [p for p in parts if p] or list(default)


class Settings:
    def __init__(
        self,
        *,
        gateway_url: str,
        anon_key: str,
        service_key: str,
        env: str = "local",
        cors_origins: str = "",
        api_version: str = "0.1.0",
        gateway_timeout: float = 15.0,
    ) -> None:
        self.gateway_url = gateway_url.rstrip("/")
        self.anon_key = anon_key
        self.service_key = service_key
        self.env = env
        # Comma-separated list of allowed CORS origins for the web front-end.
        # Default keeps the Vite dev server working out of the box.
        self.cors_origins = split_csv(cors_origins, default=DEFAULT_CORS_ORIGINS)
        self.api_version = (api_version or "").strip() or "0.1.0"
        self.gateway_timeout = gateway_timeout

    @classmethod
    def from_env(cls) -> "Settings":
        gateway_url, anon_key, service_key = (_require_env(name) for name in REQUIRED_GATEWAY_ENV)
        return cls(
            gateway_url=gateway_url,
            anon_key=anon_key,
            service_key=service_key,
            env=os.getenv("APP_ENV", "local"),
            cors_origins=os.getenv("CORS_ORIGINS", "").strip(),
            api_version=os.getenv("APP_VERSION", "0.1.0"),
            gateway_timeout=_env_float("GATEWAY_TIMEOUT_SECONDS", 15.0),
        )

    @property
    def exposes_error_detail(self) -> bool:
        return self.env in {"local", "dev"}
