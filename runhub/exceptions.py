"""Typed errors raised by the run dispatch and lifecycle services.

Routes never build HTTP responses for these directly; the handlers in
``runhub.main`` map each family onto a status code.
"""


class RunHubError(Exception):
    """Base exception for all run hub errors."""

    def __init__(self, message: str = "", **kwargs):
        self.message = message
        self.detail = kwargs
        super().__init__(message)


# Authentication


class AuthError(RunHubError):
    """Credential missing, malformed, expired or revoked."""


class UnauthorizedError(AuthError):
    pass


class RevokedTokenError(AuthError):
    pass


# Lookups


class NotFoundError(RunHubError):
    """A referenced record does not exist."""


class DeploymentNotFound(NotFoundError):
    pass


class MachineNotFound(NotFoundError):
    pass


class WorkflowVersionNotFound(NotFoundError):
    pass


class RunNotFound(NotFoundError):
    pass


class ForbiddenError(RunHubError):
    """Authenticated, but the record belongs to another org or user."""


# Dispatch


class DispatchError(RunHubError):
    """The machine could not be asked to execute the workflow."""


class MachineUnreachable(DispatchError):
    """No response was obtained from the machine."""


class BadMachineResponse(DispatchError):
    """The machine answered, but not with a valid acknowledgement."""


# Lifecycle


class ConflictError(RunHubError):
    """A run with the same id already exists."""


class InvalidTransitionError(RunHubError):
    """The requested status change is not an edge of the run lifecycle."""
