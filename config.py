"""
Configuration module for the BalikBayani Direct Hire checklist service.

Provides centralized configuration management with support for:
- Environment variables (and a .env file at the repository root)
- Default values
- Path resolution
- Logging configuration
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file at project root
_env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=_env_path)

PORTAL_BACKENDS = ("local", "http")


def _parse_bool(env_var: str, default: bool) -> bool:
    """Parse a boolean value from an environment variable."""
    value = os.getenv(env_var)
    if value is None:
        return default
    return value.lower() in ("true", "1", "t", "y", "yes")


def _parse_optional_float(env_var: str, default: Optional[float]) -> Optional[float]:
    """Parse a float from env; an empty value or 'none' disables it."""
    value = os.getenv(env_var)
    if value is None:
        return default
    if not value.strip() or value.strip().lower() == "none":
        return None
    return float(value)


class Config:
    """
    Configuration class for the checklist service.

    Supports configuration via environment variables (and .env file) with sensible defaults.
    Relative paths are resolved against the repository root.
    """

    def __init__(self):
        """Initialize configuration from environment variables and defaults."""
        self._repo_root = self._find_repo_root()

        # Storage configuration
        self.db_path = self._resolve_db_path()
        self.storage_dir = self._resolve_storage_dir()

        # Logging configuration
        self.log_level = os.getenv("BALIKBAYANI_LOG_LEVEL", "INFO").upper()
        self.log_file = self._resolve_log_path()

        # Server configuration
        self.server_name = os.getenv("BALIKBAYANI_SERVER_NAME", "balikbayani-checklist-server")

        # Portal gateway configuration
        self.portal_backend = os.getenv("BALIKBAYANI_PORTAL_BACKEND", "local").lower()
        self.api_base_url = os.getenv("BALIKBAYANI_API_BASE_URL", "http://localhost:3000")
        self.api_timeout_seconds = _parse_optional_float("BALIKBAYANI_API_TIMEOUT_SECONDS", 30.0)

        # Upload limits
        self.max_upload_mb = int(os.getenv("BALIKBAYANI_MAX_UPLOAD_MB", "5"))

        # Currency rates
        self.live_currency_rates = _parse_bool("BALIKBAYANI_LIVE_CURRENCY_RATES", False)
        self.currency_rates_url = os.getenv(
            "BALIKBAYANI_CURRENCY_RATES_URL", "https://open.er-api.com/v6/latest/USD"
        )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def _find_repo_root(self) -> Path:
        """config.py sits at the repository root."""
        return Path(__file__).resolve().parent

    def _resolve_relative(self, value: str) -> Path:
        path = Path(value)
        if path.is_absolute():
            return path
        return self._repo_root / path

    def _resolve_db_path(self) -> Path:
        """
        Resolve the database path from environment or default.

        Resolution order:
        1. BALIKBAYANI_DB environment variable (absolute or relative)
        2. BALIKBAYANI_ROOT/data/portal.db
        3. Default: <repo_root>/data/portal.db

        Returns:
            Resolved absolute Path to database
        """
        db_env = os.getenv("BALIKBAYANI_DB")
        if db_env:
            return self._resolve_relative(db_env)

        root_env = os.getenv("BALIKBAYANI_ROOT")
        if root_env:
            return Path(root_env) / "data" / "portal.db"

        return self._repo_root / "data" / "portal.db"

    def _resolve_storage_dir(self) -> Path:
        """Resolve the uploaded-file storage directory (default: data/uploads)."""
        storage_env = os.getenv("BALIKBAYANI_STORAGE_DIR")
        if storage_env:
            return self._resolve_relative(storage_env)

        root_env = os.getenv("BALIKBAYANI_ROOT")
        if root_env:
            return Path(root_env) / "data" / "uploads"

        return self._repo_root / "data" / "uploads"

    def _resolve_log_path(self) -> Optional[Path]:
        """
        Resolve the log file path from environment.

        If BALIKBAYANI_LOG_FILE is set, logs will be written to that file.
        Otherwise, logs go to stderr only.
        """
        log_env = os.getenv("BALIKBAYANI_LOG_FILE")
        if not log_env:
            return None
        return self._resolve_relative(log_env)

    def setup_logging(self):
        """
        Configure logging based on configuration settings.

        Sets up logging to stderr and optionally to a file.
        Log level is controlled by BALIKBAYANI_LOG_LEVEL.
        """
        numeric_level = getattr(logging, self.log_level, logging.INFO)

        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(numeric_level)

        # Remove existing handlers to avoid duplicates
        root_logger.handlers.clear()

        stderr_handler = logging.StreamHandler()
        stderr_handler.setLevel(numeric_level)
        stderr_handler.setFormatter(formatter)
        root_logger.addHandler(stderr_handler)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(self.log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

            logging.info(f"Logging to file: {self.log_file}")

        logging.info(f"Log level set to: {self.log_level}")
        logging.info(f"Portal backend: {self.portal_backend}")
        if self.portal_backend == "http":
            logging.info(f"Portal API: {self.api_base_url}")
        else:
            logging.info(f"Database path: {self.db_path}")

    def get_db_path_str(self) -> str:
        return str(self.db_path)

    def validate(self) -> list[str]:
        """
        Validate configuration and return any warnings.

        Returns:
            List of warning messages (empty if all valid)
        """
        warnings = []

        if self.portal_backend not in PORTAL_BACKENDS:
            warnings.append(
                f"Unknown portal backend '{self.portal_backend}'. "
                f"Expected one of: {', '.join(PORTAL_BACKENDS)}."
            )

        if self.portal_backend == "local" and not self.db_path.exists():
            warnings.append(
                f"Database file not found: {self.db_path}. "
                "Run scripts/init_portal_db.py or create an application to bootstrap it."
            )

        if self.max_upload_mb <= 0:
            warnings.append(f"Invalid upload limit: {self.max_upload_mb} MB")

        if self.log_file:
            log_dir = self.log_file.parent
            if not log_dir.exists():
                try:
                    log_dir.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    warnings.append(f"Cannot create log directory {log_dir}: {e}")
            elif not os.access(log_dir, os.W_OK):
                warnings.append(f"Log directory not writable: {log_dir}")

        return warnings


# Global configuration instance
config = Config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config
