"""
Notification sinks for staff-facing feedback.

The tracker and coordinator report every outcome (validation failures, policy
blocks, collaborator errors, successes) through a ``Notifier``. Tool handlers
use ``RecordingNotifier`` so the notifications come back in the response.
"""

import logging
from typing import Dict, List, NamedTuple, Protocol

logger = logging.getLogger(__name__)


class Notification(NamedTuple):
    """A transient message shown to staff."""

    title: str
    description: str
    destructive: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "title": self.title,
            "description": self.description,
            "destructive": self.destructive,
        }


class Notifier(Protocol):
    def notify(self, title: str, description: str, destructive: bool = False) -> None: ...


class LoggingNotifier:
    """Writes notifications to the log: destructive ones as warnings."""

    def __init__(self, log: logging.Logger = logger):
        self._log = log

    def notify(self, title: str, description: str, destructive: bool = False) -> None:
        if destructive:
            self._log.warning(f"{title}: {description}")
        else:
            self._log.info(f"{title}: {description}")


class RecordingNotifier(LoggingNotifier):
    """Keeps every notification in order, and logs it as well."""

    def __init__(self, log: logging.Logger = logger):
        super().__init__(log)
        self.notifications: List[Notification] = []

    def notify(self, title: str, description: str, destructive: bool = False) -> None:
        super().notify(title, description, destructive)
        self.notifications.append(Notification(title, description, destructive))

    @property
    def titles(self) -> List[str]:
        return [n.title for n in self.notifications]

    def to_list(self) -> List[Dict[str, object]]:
        return [n.to_dict() for n in self.notifications]

    def clear(self) -> None:
        self.notifications.clear()
