"""
Centralized, type-safe status definitions for the Direct Hire workflow.

This module is the single source of truth for the values used across the
service:

- ``Milestone``: the five ordered status-checklist milestones of a Direct
  Hire application.
- ``ApplicationType``: discriminator sent with every document request so the
  unified documents store can tell application families apart.
- ``ApplicationStatus``: coarse status column kept on the application row.

All Enums inherit from ``(str, Enum)`` so members compare equal to plain
strings and serialize naturally to JSON at API boundaries.
"""

from enum import Enum
from typing import Dict, Tuple


class Milestone(str, Enum):
    """Status checklist milestones, declared in display order.

    ``for_interview`` is the conventional last milestone, not an enforced
    terminal state.
    """

    EVALUATED = "evaluated"
    FOR_CONFIRMATION = "for_confirmation"
    EMAILED_TO_DHAD = "emailed_to_dhad"
    RECEIVED_FROM_DHAD = "received_from_dhad"
    FOR_INTERVIEW = "for_interview"


MILESTONE_ORDER: Tuple[Milestone, ...] = tuple(Milestone)

MILESTONE_LABELS: Dict[Milestone, str] = {
    Milestone.EVALUATED: "Evaluated",
    Milestone.FOR_CONFIRMATION: "For Confirmation",
    Milestone.EMAILED_TO_DHAD: "Emailed to DHAD",
    Milestone.RECEIVED_FROM_DHAD: "Received from DHAD",
    Milestone.FOR_INTERVIEW: "For Interview",
}


class ApplicationType(str, Enum):
    """Application families sharing the unified documents store."""

    DIRECT_HIRE = "direct_hire"
    BALIK_MANGGAGAWA = "balik_manggagawa"
    GOV_TO_GOV = "gov_to_gov"
    INFORMATION_SHEET = "information_sheet"


class ApplicationStatus(str, Enum):
    """Coarse status stored on the direct_hire_applications row."""

    PENDING = "pending"
    EVALUATED = "evaluated"
    FOR_CONFIRMATION = "for_confirmation"
    EMAILED_TO_DHAD = "emailed_to_dhad"
    RECEIVED_FROM_DHAD = "received_from_dhad"
    FOR_INTERVIEW = "for_interview"
    APPROVED = "approved"
    REJECTED = "rejected"
