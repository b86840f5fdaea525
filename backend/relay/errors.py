"""Error taxonomy shared by the callable API and the background flows."""


class RelayError(Exception):
    """Base class for errors raised by relay services."""

    code = "internal"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class Unauthenticated(RelayError):
    """Missing or invalid caller credential."""

    code = "unauthenticated"
    status_code = 401


class PermissionDenied(RelayError):
    """Domain-policy or ownership violation. Never worth retrying."""

    code = "permission-denied"
    status_code = 403


class NotFound(RelayError):
    code = "not-found"
    status_code = 404


class InvalidArgument(RelayError):
    code = "invalid-argument"
    status_code = 400


class TransientProviderFailure(RelayError):
    """Push provider or store call failed; the event runtime may redeliver."""

    code = "unavailable"
    status_code = 503


class FatalBatchFailure(RelayError):
    """A retention sweep batch failed; the current run is aborted."""

    code = "internal"
    status_code = 500
