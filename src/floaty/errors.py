"""Exceptions raised by floaty."""


class FloatyError(Exception):
    """Base class for all floaty errors."""
    pass


class ConfigurationError(FloatyError):
    """Configuration is missing, inconsistent or names an unknown service."""
    pass


class UnsupportedOperationError(ConfigurationError):
    """Operation is not available for the configured service type."""
    pass


class AuthError(FloatyError):
    """The service rejected the supplied credentials (HTTP 401)."""
    pass


class TokenError(FloatyError):
    """A token is required but absent, or a token request failed."""
    pass


class ModifyError(FloatyError):
    """The service rejected a modification."""
    pass


class UnsupportedModificationError(ModifyError, ConfigurationError):
    """A modification key is not supported by the configured service type."""
    pass


class MissingParameterError(FloatyError):
    """A required request parameter was not supplied."""
    pass


class AcquisitionError(FloatyError):
    """The service refused to hand out the requested VMs."""
    pass


class PoolMaximumExceededError(AcquisitionError):
    """Request exceeds the configured per pool maximum (HTTP 403)."""
    pass


class RequestNotFoundError(FloatyError):
    """An on-demand request id is unknown to the service (HTTP 404)."""
    pass


class InvalidResponseError(FloatyError):
    """The service returned a body that cannot be interpreted."""
    pass
