"""Errors raised while validating or running a rank request."""


class RankError(Exception):
    """Base class for neighbor-rank failures."""

    kind = "server"

    def to_response(self) -> dict:
        return {"success": False, "error": str(self), "error_type": self.kind}


class ValidationError(RankError, ValueError):
    """Malformed request; the traversal never starts."""

    kind = "client"


class InvalidConfig(ValidationError):
    """Malformed step configuration."""


class ResolutionError(RankError, LookupError):
    """Source vertex or edge label does not exist in the target graph."""

    kind = "client"


class InternalFault(RankError):
    """Underlying store access failed. Not retried."""
