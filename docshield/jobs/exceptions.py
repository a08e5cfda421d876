class InvalidTransitionError(Exception):
    """Raised when a job state change is not allowed from the current state."""
