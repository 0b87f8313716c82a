__all__ = ["ResolutionError", "NoSettableMemberError"]


class ResolutionError(Exception):
    """Raised when a bean cannot be constructed, injected or configured."""

    pass


class NoSettableMemberError(ResolutionError):
    """Raised when a configured property has neither a setter nor a field."""

    pass
