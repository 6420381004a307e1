"""
Console Enums

All enum types used by the list controller and its HTTP surface.
Wire values must match the remote persons API exactly.
"""

from enum import Enum

# ════════════════════════════════════════════════════════════════════════════
# Ordering
# ════════════════════════════════════════════════════════════════════════════


class SortField(str, Enum):
    """Columns the person list can be ordered by."""

    NAME = "name"
    AGE = "age"
    CREATED_AT = "created_at"

    @property
    def wire_name(self) -> str:
        """Field name used in the `ordering` query parameter."""
        return _WIRE_NAMES[self]

    @classmethod
    def from_wire_name(cls, wire_name: str) -> "SortField":
        """Map an `ordering` field name back to its SortField."""
        for field, name in _WIRE_NAMES.items():
            if name == wire_name:
                return field
        raise ValueError(f"Unknown ordering field: {wire_name}")


_WIRE_NAMES = {
    SortField.NAME: "person_name",
    SortField.AGE: "age",
    SortField.CREATED_AT: "created_date",
}


class SortDirection(str, Enum):
    """Sort direction."""

    ASCENDING = "ascending"
    DESCENDING = "descending"

    def inverted(self) -> "SortDirection":
        """Return the opposite direction."""
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING


# ════════════════════════════════════════════════════════════════════════════
# Background job and bulk delete state machines
# ════════════════════════════════════════════════════════════════════════════


class TaskStatus(str, Enum):
    """Terminal and pending statuses reported by the long-task endpoint."""

    PENDING = "PENDING"  # Anything that is not terminal is treated like PENDING
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class JobPhase(str, Enum):
    """Background job poller phase."""

    IDLE = "IDLE"
    SUBMITTING = "SUBMITTING"  # Start request in flight
    POLLING = "POLLING"  # Waiting for a terminal status
    SUCCEEDED = "SUCCEEDED"  # Result available
    FAILED = "FAILED"  # Remote computation reported FAILURE
    ERRORED = "ERRORED"  # Start/status transport failure or attempt budget exhausted


class DeletePhase(str, Enum):
    """Bulk delete orchestrator phase."""

    IDLE = "IDLE"
    CONFIRMING = "CONFIRMING"
    DELETING = "DELETING"


class DeleteOutcomeStatus(str, Enum):
    """Per-record outcome of a bulk delete run."""

    DELETED = "DELETED"
    FAILED = "FAILED"
    NOT_ATTEMPTED = "NOT_ATTEMPTED"  # Skipped because an earlier delete failed


# ════════════════════════════════════════════════════════════════════════════
# Notifications
# ════════════════════════════════════════════════════════════════════════════


class NotificationLevel(str, Enum):
    """Severity of a transient notification."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
