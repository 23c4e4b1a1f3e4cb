"""Runtime configuration for the sheet scanner service.

Architectural role:
    Centralizes credential lookup, model selection, upload limits, and runtime
    mode for the HTTP adapter and the analysis client.

Lifecycle:
    `load_settings()` is called once at process start (or once per test) and the
    resulting `Settings` object is passed explicitly to the consumers that need
    it. No module reads configuration from the environment after startup.

Failure behavior:
    Missing key material is represented as `None`. Startup is never aborted for
    it; analysis calls fail later with a `ConfigurationError`.
"""

import logging
import os
import tempfile
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_KEY_FILE = "config/gemini.key"
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_UPLOAD_MB = 10
DEFAULT_PORT = 3000

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    """Immutable process configuration.

    Attributes:
        api_key: Gemini credential, or `None` when not configured.
        model_name: Hosted model variant used for `generateContent`.
        api_base: REST base URL of the Gemini API.
        timeout_seconds: Per-request timeout for outbound model calls.
        environment: Runtime mode label (`development` enables error echo).
        max_upload_bytes: Upload size ceiling.
        upload_dir: Directory that holds request-scoped staging files.
        host: Bind address used by the `serve` command.
        port: Bind port used by the `serve` command.
        log_level: Root logging level name.
    """

    api_key: str | None = None
    model_name: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    environment: str = "production"
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
    upload_dir: str = os.path.join(tempfile.gettempdir(), "sheet-scanner")
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def max_upload_mb(self) -> int:
        return self.max_upload_bytes // (1024 * 1024)


def load_key(path):
    """Load the Gemini API key from environment override or key file.

    Resolution order:
        1. `GEMINI_API_KEY` environment variable.
        2. Raw file contents at `path`.

    Edge cases:
        - Empty/whitespace values are treated as missing.
        - Missing file returns `None`.
    """
    env_value = (os.getenv("GEMINI_API_KEY") or "").strip()
    if env_value:
        return env_value
    if not path or not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None


def load_settings(env_file: str | None = None) -> Settings:
    """Build `Settings` from `.env` and the process environment.

    Args:
        env_file: Optional explicit dotenv path; defaults to `.env` discovery.

    Raises:
        ValueError: When a numeric variable cannot be parsed.
    """
    load_dotenv(env_file)

    environment = os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "production"
    max_upload_mb = int(os.getenv("MAX_UPLOAD_MB", str(DEFAULT_MAX_UPLOAD_MB)))

    return Settings(
        api_key=load_key(os.getenv("GEMINI_KEY_FILE", DEFAULT_KEY_FILE)),
        model_name=os.getenv("GEMINI_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL,
        api_base=os.getenv("GEMINI_API_BASE", DEFAULT_API_BASE).rstrip("/"),
        timeout_seconds=float(
            os.getenv("GEMINI_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
        ),
        environment=environment.strip().lower(),
        max_upload_bytes=max_upload_mb * 1024 * 1024,
        upload_dir=os.path.realpath(
            os.getenv("UPLOAD_DIR", os.path.join(tempfile.gettempdir(), "sheet-scanner"))
        ),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", str(DEFAULT_PORT))),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install the root log format once for CLI and server entrypoints."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
