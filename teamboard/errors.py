"""Error taxonomy shared by the service layer and the HTTP boundary.

Every error carries the HTTP status it maps to; ``details`` is only exposed to
callers outside production.
"""


class TeamboardError(Exception):
    status_code = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self, include_details: bool = False) -> dict:
        body: dict = {"error": self.message}
        if include_details and self.details:
            body["details"] = self.details
        return body


class ValidationError(TeamboardError):
    status_code = 400


class AuthenticationError(TeamboardError):
    status_code = 401


class AuthorizationError(TeamboardError):
    status_code = 403


class NotFoundError(TeamboardError):
    status_code = 404


class ConfigurationError(TeamboardError):
    status_code = 500


class ExternalServiceError(TeamboardError):
    """A Supabase or Gmail call failed."""

    status_code = 500
