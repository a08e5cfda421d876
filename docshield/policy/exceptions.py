class PolicyError(Exception):
    """Raised when a stored policy document cannot be turned into a PolicyConfig."""
