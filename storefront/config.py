import os
from dataclasses import dataclass
from typing import Optional

# Load a local .env file if present (no-op otherwise).
from dotenv import load_dotenv

load_dotenv()


def _env_first(*names: str, default: Optional[str] = None) -> Optional[str]:
    """Return the first non-blank environment variable among `names`."""
    for name in names:
        raw = os.environ.get(name)
        if raw is not None and raw.strip():
            return raw.strip()
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide secrets via environment variables or a .env file.
    Do not hardcode secrets in source code.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set STOREFRONT_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: STOREFRONT_DB_PATH for SQLite.
    DB_DSN: str = (
        _env_first("STOREFRONT_DATABASE_URL", "DATABASE_URL", "STOREFRONT_DB_PATH")
        or "./storefront.sqlite"
    )

    # Path of the RPC endpoint; procedures live at <RPC_ENDPOINT>/<namespace>.<name>
    RPC_ENDPOINT: str = os.environ.get("RPC_ENDPOINT", "/api/trpc")

    # -----------------
    # Auth (JWT)
    # -----------------
    # There is no fallback secret: startup fails when this is blank.
    AUTH_JWT_SECRET: str = _env_first("AUTH_JWT_SECRET", "JWT_SECRET", default="") or ""
    AUTH_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_MINUTES", "10080"))  # 7 days

    # -----------------
    # CORS
    # -----------------
    # The RPC endpoint is called from browser frontends on other origins.
    CORS_ALLOW_ORIGIN: str = os.environ.get("CORS_ALLOW_ORIGIN", "*")

    # -----------------
    # Contact mail
    # -----------------
    # MAIL_BACKEND=smtp sends through MAIL_SMTP_HOST; MAIL_BACKEND=memory keeps
    # messages in process (local development).
    MAIL_BACKEND: str = os.environ.get("MAIL_BACKEND", "smtp")
    MAIL_SMTP_HOST: str = os.environ.get("MAIL_SMTP_HOST", "smtp.gmail.com")
    MAIL_SMTP_PORT: int = int(os.environ.get("MAIL_SMTP_PORT", "465"))
    MAIL_USER: str | None = _env_first("MAIL_USER", "GMAIL_USER")
    MAIL_PASSWORD: str | None = _env_first("MAIL_PASSWORD", "GMAIL_APP_PASSWORD")
    # Operator address that receives contact-form notifications.
    MAIL_TO: str | None = _env_first("MAIL_TO", "GMAIL_TO")
    MAIL_SUBJECT_PREFIX: str = os.environ.get("MAIL_SUBJECT_PREFIX", "[Inquiry]")
    MAIL_TIMEOUT_SECONDS: float = float(os.environ.get("MAIL_TIMEOUT_SECONDS", "30"))


def load_config() -> Config:
    return Config()


def validate_config(cfg: Config) -> list[str]:
    """Check configuration at startup.

    Raises RuntimeError for settings the service cannot run without and
    returns a list of warnings for settings that only break some procedures.
    """
    if not (cfg.AUTH_JWT_SECRET or "").strip():
        raise RuntimeError(
            "AUTH_JWT_SECRET is not set. Set it to a strong random value "
            "(e.g. `openssl rand -hex 32`) before starting the API."
        )

    warnings: list[str] = []
    if cfg.MAIL_BACKEND == "smtp":
        missing = [
            name
            for name, value in (
                ("MAIL_USER", cfg.MAIL_USER),
                ("MAIL_PASSWORD", cfg.MAIL_PASSWORD),
                ("MAIL_TO", cfg.MAIL_TO),
            )
            if not value
        ]
        if missing:
            warnings.append(f"mail.send will fail until {', '.join(missing)} is set")
    elif cfg.MAIL_BACKEND != "memory":
        warnings.append(f"unknown MAIL_BACKEND={cfg.MAIL_BACKEND!r}; using smtp")
    return warnings
