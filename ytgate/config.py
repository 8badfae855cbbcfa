import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

PROVIDERS = ("ytdlp", "pytube", "cobalt")

_ROOT = Path(__file__).resolve().parent.parent


def _as_bool(name: str, value: str) -> bool:
    text = value.strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be true or false, got {value!r}")


def _as_number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup"""

    provider: str = "ytdlp"
    ytdlp_path: str = "yt-dlp"
    ytdlp_cookies: Optional[str] = None
    cobalt_api_url: str = "https://api.cobalt.tools/api/json"
    metadata_timeout: float = 30.0
    chunk_size: int = 64 * 1024
    info_fallback: bool = True
    cors_origins: Tuple[str, ...] = ("*",)
    static_dir: Path = field(default=_ROOT / "public")
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    def __post_init__(self):
        if self.provider not in PROVIDERS:
            raise ValueError(
                f"Unknown provider {self.provider!r}, expected one of {', '.join(PROVIDERS)}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the environment (and a .env file when present)"""
        if environ is None:
            load_dotenv()
            environ = os.environ

        origins = environ.get("YTGATE_CORS_ORIGINS", "*")
        static_dir = environ.get("YTGATE_STATIC_DIR")

        return cls(
            provider=environ.get("YTGATE_PROVIDER", "ytdlp").strip().lower(),
            ytdlp_path=environ.get("YTDLP_PATH", "yt-dlp"),
            ytdlp_cookies=environ.get("YTDLP_COOKIES") or None,
            cobalt_api_url=environ.get("COBALT_API_URL", cls.cobalt_api_url),
            metadata_timeout=_as_number(environ, "YTGATE_METADATA_TIMEOUT", 30.0, float),
            chunk_size=_as_number(environ, "YTGATE_CHUNK_SIZE", 64 * 1024, int),
            info_fallback=_as_bool("YTGATE_INFO_FALLBACK", environ.get("YTGATE_INFO_FALLBACK", "true")),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            static_dir=Path(static_dir) if static_dir else _ROOT / "public",
            host=environ.get("HOST", "0.0.0.0"),
            port=_as_number(environ, "PORT", 8000, int),
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
        )
