"""Reminder engine error taxonomy."""


class ReminderError(Exception):
    """Base class for reminder engine errors."""


class ValidationError(ReminderError, ValueError):
    """Malformed trigger definition, lease fields or query input."""


class RenderError(ReminderError):
    """A template placeholder cannot be resolved for a given context."""


class ConflictError(ReminderError):
    """A reminder already exists for (lease_id, trigger_name, trigger_date)."""


class InvalidStateError(ReminderError):
    """A lifecycle transition was attempted from a non-pending state."""

    def __init__(self, reminder_id: str, current_status: str, target_status: str):
        self.reminder_id = reminder_id
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Reminder {reminder_id} is {current_status}; cannot move to {target_status}"
        )


class NotFoundError(ReminderError, LookupError):
    """A reminder or trigger does not exist."""


class StorageError(ReminderError):
    """The store could not be reached or failed systemically.

    ``partial`` holds whatever a batch operation accumulated before failing.
    """

    def __init__(self, message: str, partial=None):
        super().__init__(message)
        self.partial = partial


class TransportError(ReminderError):
    """The outbound messaging collaborator rejected or failed a delivery."""
