"""
MCP tool handler for create_direct_hire_application.

Creates a Direct Hire application with an all-unchecked status checklist,
an assigned control number and the salary converted to USD.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from clients.factory import build_gateway
from clients.notifier import RecordingNotifier
from config import get_config
from models.errors import PortalError, create_internal_error
from schemas.common import notifications_payload
from schemas.direct_hire import (
    CreateDirectHireApplicationRequest,
    CreateDirectHireApplicationResponse,
)
from utils.currency import load_live_rates
from utils.pydantic_error_mapper import map_pydantic_validation_error

logger = logging.getLogger(__name__)


def create_direct_hire_application(args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a Direct Hire application.

    Args:
        args: Dictionary containing parameters:
            - name, sex, salary, jobsite, position (required)
            - salary_currency (str, optional): ISO code of ``salary`` (default USD)
            - job_type, evaluator, employer (str, optional)
            - refresh_rates (bool, optional): Reload live rates even if already loaded
            - db_path (str, optional): Database path override (local backend)

    Returns:
        Dictionary with structure (success case):
        {
            "application": {...},       # Stored application incl. control_number
            "notifications": [...]
        }

        On error, returns:
        {
            "error": {
                "code": str,            # VALIDATION_ERROR, DB_ERROR, NETWORK_ERROR, ...
                "message": str,
                "retryable": bool
            }
        }
    """
    gateway = None
    try:
        request = CreateDirectHireApplicationRequest.model_validate(args)
        cfg = get_config()

        if cfg.live_currency_rates:
            load_live_rates(
                cfg.currency_rates_url,
                timeout=cfg.api_timeout_seconds,
                force=request.refresh_rates,
            )

        notifier = RecordingNotifier()
        gateway = build_gateway(cfg, db_path=request.db_path)
        application = gateway.create_direct_hire_application(request.application_payload())
        notifier.notify(
            "Application created",
            f"Direct hire application {application.control_number} has been created.",
        )

        return CreateDirectHireApplicationResponse(
            application=application.to_dict(),
            notifications=notifications_payload(notifier),
        ).model_dump()

    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    except PortalError as e:
        return e.to_dict()

    except Exception as e:
        logger.exception("Unexpected error in create_direct_hire_application")
        return create_internal_error(message=str(e), original_error=e).to_dict()

    finally:
        if gateway is not None:
            gateway.close()
