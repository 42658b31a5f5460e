from enum import Enum


class FreeTimeError(Exception):
    """Base class for scheduling errors."""


class PersistenceUnavailable(FreeTimeError):
    """The backing store could not be reached."""


class NotAuthorized(FreeTimeError):
    """A mutation was attempted by someone other than the owner."""


class NotFound(FreeTimeError):
    """The group or block does not exist."""


class InvalidInterval(FreeTimeError, ValueError):
    """End of an interval is not after its start."""


class InvalidGroupCode(FreeTimeError, ValueError):
    """Group codes are exactly four letters."""


class MutationStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    NOT_AUTHORIZED = "not_authorized"
    UNAVAILABLE = "unavailable"

    @property
    def ok(self) -> bool:
        return self is MutationStatus.OK
