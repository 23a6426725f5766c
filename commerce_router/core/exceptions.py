class CommerceRouterError(Exception):
    """Base class for errors raised by the router and its collaborators."""


class ConfigError(CommerceRouterError):
    """Raised when config loading or validation fails."""


class InvalidInputError(CommerceRouterError):
    """Raised when a query envelope is rejected before the pipeline starts (empty query)."""


class InvocationError(CommerceRouterError):
    """Raised when a model or responder call fails (provider, network, or non-success reply)."""


class AgentUnavailable(InvocationError):
    """Raised when a responder service cannot be reached or returns an error."""
