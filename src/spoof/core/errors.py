"""Exception types shared by the client, poller and driver."""


class SpoofError(Exception):
    """Base class for pipeline failures that end a phase."""


class ServiceError(SpoofError):
    """The remote service could not be reached or answered with an error.

    ``status_code`` is None for transport-level failures (connection refused,
    timeout, malformed body).
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SubmissionError(SpoofError):
    """A phase-start request was rejected or returned an unusable body."""


class JobFailedError(SpoofError):
    """The remote job reported a failed/error status."""


class PollingError(SpoofError):
    """Status polling hit the consecutive-error threshold."""
