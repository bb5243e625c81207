class BackendError(Exception):
    """Raised when a call to the backend canister does not produce a value."""

    def __init__(self, method: str, message: str):
        super().__init__(f"{method}: {message}")
        self.method = method
        self.message = message


class ActorUnavailableError(BackendError):
    """Transport-level failure: connection refused, timeout, non-2xx, bad JSON."""


class BackendRejectedError(BackendError):
    """The backend answered with an explicit error (authorization, validation...)."""


class InputError(ValueError):
    """User input rejected before any network call."""


class InvalidTransitionError(Exception):
    def __init__(self, status, action: str):
        super().__init__(f"cannot {action} a booking in status {getattr(status, 'value', status)}")
        self.status = status
        self.action = action


class InviteTokenRejected(Exception):
    pass


class GateRejected(Exception):
    """Carries an access decision that the app renders instead of the page."""

    def __init__(self, decision):
        super().__init__(type(decision).__name__)
        self.decision = decision
