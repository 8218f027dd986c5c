"""Error taxonomy shared by the allocation workflow, tasks and HTTP layer.

Every error carries a stable ``code`` that callers can match on, and the HTTP
status the API layer answers with.
"""


class CampusEventsError(Exception):
    code = "internal"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class NotFoundError(CampusEventsError):
    code = "not-found"
    status_code = 404


class ConflictError(CampusEventsError):
    """Transaction contention outlasted the retry budget."""

    code = "aborted"
    status_code = 409


class AlreadyExistsError(CampusEventsError):
    code = "already-exists"
    status_code = 409


class UnauthenticatedError(CampusEventsError):
    code = "unauthenticated"
    status_code = 401


class InvalidArgumentError(CampusEventsError):
    code = "invalid-argument"
    status_code = 400


class DispatchError(CampusEventsError):
    """The email provider rejected or failed a send."""

    code = "internal"
    status_code = 502
