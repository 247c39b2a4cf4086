"""Gateway selection from configuration."""

import logging
from typing import Optional

from clients.gateway import PortalGateway
from clients.http_gateway import HttpPortalGateway
from clients.local_gateway import LocalPortalGateway
from config import Config, get_config
from models.errors import create_validation_error

logger = logging.getLogger(__name__)


def build_gateway(cfg: Optional[Config] = None, db_path: Optional[str] = None) -> PortalGateway:
    """
    Build the gateway selected by ``BALIKBAYANI_PORTAL_BACKEND``.

    Args:
        cfg: Configuration (defaults to the global instance)
        db_path: Database override for the local backend

    Raises:
        PortalError: VALIDATION_ERROR for an unknown backend
    """
    cfg = cfg or get_config()

    if cfg.portal_backend == "http":
        logger.debug(f"Using portal API at {cfg.api_base_url}")
        return HttpPortalGateway(cfg.api_base_url, timeout=cfg.api_timeout_seconds)

    if cfg.portal_backend == "local":
        return LocalPortalGateway(
            db_path=db_path or cfg.get_db_path_str(),
            storage_dir=str(cfg.storage_dir),
            max_upload_bytes=cfg.max_upload_bytes,
        )

    raise create_validation_error(f"Unknown portal backend: '{cfg.portal_backend}'")
