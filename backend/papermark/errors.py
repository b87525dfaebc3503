"""Error taxonomy shared by the services and the HTTP layer."""


class PaperMarkError(Exception):
    """Base class for every failure that is shown to the caller."""

    status_code = 500

    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)
        self.message = message


class ValidationError(PaperMarkError):
    """Bad input shape or a disallowed subject/paper combination."""

    status_code = 400


class AuthenticationError(PaperMarkError):
    """Sign-in could not be verified."""

    status_code = 401


class NotFoundError(PaperMarkError):
    """Row is absent or owned by someone else. Both look the same."""

    status_code = 404


class ConflictError(PaperMarkError):
    """Another grading attempt already holds the exam."""

    status_code = 409


class UpstreamError(PaperMarkError):
    """Storage or oracle call failed, or the oracle returned garbage."""

    status_code = 502


class InternalError(PaperMarkError):
    """Persistence failure."""

    status_code = 500
