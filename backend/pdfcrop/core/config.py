"""
Unified Configuration.

Supports:
- PORT from environment (default 3000)
- Local upload scratch directory
- Upload size limit
- Optional static front-end directory
"""
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_STATIC_DIR = str(Path(__file__).resolve().parent.parent / "static")

VALID_ENVIRONMENTS = frozenset({"dev", "staging", "prod"})


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "pdf-crop-api"
    env: str = "dev"  # dev | staging | prod

    # ═══════════════════════════════════════════════════════════════════════════
    # Server
    # ═══════════════════════════════════════════════════════════════════════════
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # ═══════════════════════════════════════════════════════════════════════════
    # Uploads
    # ═══════════════════════════════════════════════════════════════════════════
    upload_dir: str = "uploads"
    max_upload_bytes: int = 200 * 1024 * 1024  # 200 MB
    upload_chunk_bytes: int = 1024 * 1024

    # ═══════════════════════════════════════════════════════════════════════════
    # Front-end / CORS
    # ═══════════════════════════════════════════════════════════════════════════
    static_dir: str = DEFAULT_STATIC_DIR
    cors_allowed_origins: str = ""  # comma-separated, empty = "*"

    # ═══════════════════════════════════════════════════════════════════════════
    # Helpers
    # ═══════════════════════════════════════════════════════════════════════════
    @property
    def cors_origins(self) -> List[str]:
        origins = [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        return origins or ["*"]

    @property
    def is_production(self) -> bool:
        return self.env == "prod"


class ConfigValidationError(Exception):
    """Raised when config validation fails at startup."""
    pass


def validate_settings(cfg: Settings) -> None:
    """
    Validate config invariants at startup.

    Raises:
        ConfigValidationError: listing every violated invariant
    """
    errors: List[str] = []

    if not (1 <= cfg.port <= 65535):
        errors.append(f"PORT ({cfg.port}) must be in range 1..65535")

    if cfg.max_upload_bytes <= 0:
        errors.append(f"MAX_UPLOAD_BYTES ({cfg.max_upload_bytes}) must be > 0")

    if cfg.upload_chunk_bytes <= 0:
        errors.append(f"UPLOAD_CHUNK_BYTES ({cfg.upload_chunk_bytes}) must be > 0")
    elif cfg.max_upload_bytes > 0 and cfg.upload_chunk_bytes > cfg.max_upload_bytes:
        errors.append(
            f"UPLOAD_CHUNK_BYTES ({cfg.upload_chunk_bytes}) must be <= "
            f"MAX_UPLOAD_BYTES ({cfg.max_upload_bytes})"
        )

    if cfg.env not in VALID_ENVIRONMENTS:
        errors.append(
            f"ENV ({cfg.env!r}) must be one of {sorted(VALID_ENVIRONMENTS)}"
        )

    if errors:
        raise ConfigValidationError(
            f"Config validation failed with {len(errors)} error(s):\n" +
            "\n".join(f"  - {e}" for e in errors)
        )


# Singleton
settings = Settings()
