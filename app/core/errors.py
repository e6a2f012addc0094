"""Error taxonomy for plan operations.

Services raise these; the API layer maps them to HTTP responses. None of them
is fatal: every failure leaves previously stored state untouched.
"""


class PlanError(Exception):
    """Base class for all recoverable plan operation failures."""
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(PlanError):
    """Plan, membership, join request or payment lookup failed."""
    status_code = 404


class NotAuthorizedError(PlanError):
    """Caller is not the owner/member required for the action."""
    status_code = 403


class InvalidInputError(PlanError):
    """Unparseable amount or month, or a non-positive payment claim."""
    status_code = 400


class InvalidStateError(PlanError):
    """The requested transition is not allowed from the current state."""
    status_code = 409


class TransactionError(PlanError):
    """A repository write or transaction failed and was rolled back."""
    status_code = 500
