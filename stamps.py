from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Generic, Protocol, TypeVar

T = TypeVar('T')


class StampType(str, Enum):
    """Kind of a clock event."""
    IN = 'in'
    OUT = 'out'


class NotificationType(str, Enum):
    """Severity of a report notification."""
    WARNING = 'warning'
    MESSAGE = 'message'

# ==============================================================================
# NOTIFICATION CONFIGURATION
# Central source of truth for every correction the reports can apply.
#
# Properties:
#   - text: The message shown to whoever reads the report. May contain
#           str.format placeholders filled in by the correcting function.
#   - type: Warning when the data was found broken, Message when the system
#           describes what it did about it.
# ==============================================================================
NOTIFICATION_CONFIG: dict[str, dict] = {
    'duplicate_removed': {
        'text': 'Duplicated {stamp_type}-stamp at {time:%H:%M:%S} was removed.',
        'type': NotificationType.MESSAGE
    },
    'same_type_split': {
        'text': 'Consecutive {stamp_type}-stamps at {first:%H:%M:%S} and {second:%H:%M:%S}; '
                '{stamp_type}-stamp was added at {time:%H:%M:%S}.',
        'type': NotificationType.WARNING
    },
    'first_in_missing': {
        'text': 'First In-stamp was not found.',
        'type': NotificationType.WARNING
    },
    'day_begin_used': {
        'text': 'Begin of target day was added as first In-stamp.',
        'type': NotificationType.MESSAGE
    },
    'last_out_missing': {
        'text': 'Last Out-stamp was not found.',
        'type': NotificationType.WARNING
    },
    'next_day_out_used': {
        'text': 'First Out-stamp of next day was added as last Out-stamp.',
        'type': NotificationType.MESSAGE
    },
    'day_end_used': {
        'text': 'End of target day was added as last Out-stamp.',
        'type': NotificationType.MESSAGE
    },
    'unpaired_stamps': {
        'text': '{count} stamp(s) could not be paired and were not counted.',
        'type': NotificationType.WARNING
    },
}


class InvalidArgumentError(TypeError):
    """Raised when a report function gets an argument of the wrong shape."""


class InconsistentSequenceError(ValueError):
    """Raised in strict mode when corrected stamps still do not form In/Out pairs."""


@dataclass(frozen=True)
class Stamp:
    """One clock-in or clock-out event of an employee."""
    employee_id: int
    type: StampType
    time: datetime


@dataclass(frozen=True)
class Notification:
    """One entry of the audit trail attached to a report."""
    message: str
    type: NotificationType = NotificationType.MESSAGE

    @classmethod
    def from_config(cls, key: str, **values) -> 'Notification':
        """
        Builds a notification from its NOTIFICATION_CONFIG entry.

        Args:
            key: Name of the correction in NOTIFICATION_CONFIG.
            **values: Values for the placeholders of the configured text.

        Returns:
            A notification with the formatted text and configured type.

        Raises:
            KeyError: If the key is not configured.
        """
        config: dict = NOTIFICATION_CONFIG[key]
        return cls(config['text'].format(**values), config['type'])


@dataclass
class ReportProtocol(Generic[T]):
    """Result of a report together with the notifications collected while computing it."""
    result: T | None = None
    notifications: list[Notification] = field(default_factory=list)

    @property
    def warnings(self) -> list[Notification]:
        return [n for n in self.notifications if n.type == NotificationType.WARNING]


class StampsSource(Protocol):
    """Anything that can hand out the stamps of one employee for one day, ordered by time."""

    def get_by_employee_id_for_day(self, employee_id: int, day: date) -> list[Stamp]:
        ...
