"""Custom exceptions for the media server bridge."""


class MediaServer2Error(Exception):
    """Base exception for media server bridge errors."""
    kind = "Failed"


class InvalidIdentifier(MediaServer2Error):
    """Raised when an object identifier cannot be decoded."""
    kind = "InvalidIdentifier"


class UnknownProperty(MediaServer2Error):
    """Raised when a property filter names a field outside the schema."""
    kind = "UnknownProperty"

    def __init__(self, name: str) -> None:
        super().__init__(f'Wrong property "{name}"')
        self.name = name


class BackendUnavailable(MediaServer2Error):
    """Raised when an endpoint has no function installed for an operation."""
    kind = "BackendUnavailable"


class BackendError(MediaServer2Error):
    """Raised when a backend reports a failure for an asynchronous operation."""
    kind = "BackendError"


class OperationNotPermitted(MediaServer2Error):
    """Raised when an operation is issued against an object that cannot serve it."""
    kind = "OperationNotPermitted"


class ConfigurationError(MediaServer2Error):
    """Raised when there's an error in configuration."""
    kind = "ConfigurationError"


class RegistrationError(MediaServer2Error):
    """Raised when a backend cannot be published under its endpoint name."""
    kind = "RegistrationError"


class InvalidArguments(MediaServer2Error):
    """Raised when a remote call carries malformed arguments."""
    kind = "InvalidArgs"


class UnknownEndpoint(MediaServer2Error):
    """Raised when a request addresses a source that is not published."""
    kind = "UnknownEndpoint"
