"""
Error taxonomy for the InfluxDB provider.

Every failure surfaced to the host runtime is one of these exceptions. Each
class carries a short ``summary`` label which reconcilers combine with the
lifecycle stage (e.g. "Create - API Error") when turning the exception into a
diagnostic.
"""

from typing import Optional


class InfluxDBError(Exception):
    """Base class for all provider errors."""

    summary = "Client Error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(InfluxDBError):
    """A local invariant on the desired document was violated."""

    summary = "Validation Error"


class LookupFailedError(InfluxDBError):
    """A referenced name could not be resolved to an ID."""

    summary = "Lookup Error"


class OrganizationNotFoundError(LookupFailedError):
    """No organization matches the given name or ID."""

    def __init__(self, org: str, cause: Optional[Exception] = None):
        self.org = org
        message = f"Unable to find organization '{org}'"
        if cause is not None:
            message = f"{message}, got error: {cause}"
        super().__init__(message)


class UserLookupError(LookupFailedError):
    """The currently authenticated user could not be determined."""


class TransportError(InfluxDBError):
    """The management API could not be reached."""

    summary = "HTTP Error"


class APIError(InfluxDBError):
    """The management API answered with an unexpected status code."""

    summary = "API Error"

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"InfluxDB API returned status {status}: {body}")


class NotFoundError(APIError):
    """The management API answered 404 for the requested object."""

    def __init__(self, body: str = ""):
        super().__init__(404, body)


class SerializationError(InfluxDBError):
    """A request could not be encoded or a response could not be decoded."""

    summary = "Parse Error"
