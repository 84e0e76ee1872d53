"""Error taxonomy shared by services, auth and the HTTP layer.

Services raise these exceptions; `roster.main` registers a single
handler that turns any `RosterError` into a JSON response, so none of
them escapes a request as an unhandled fault.
"""

from typing import Dict, List, Optional


class RosterError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class ValidationError(RosterError):
    """Malformed or missing request fields.

    `errors` maps a field name to the list of messages for that field.
    """
    status_code = 422

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        super().__init__(message or "the given data was invalid")
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})

    def to_dict(self) -> dict:
        return {"detail": self.message, "errors": self.errors}


class NotFoundError(RosterError):
    """A referenced entity id does not exist."""
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class AuthenticationError(RosterError):
    """Missing or invalid bearer credential on a protected route."""
    status_code = 401


class ConflictError(RosterError):
    """The store refused a mutation, e.g. deleting a referenced row."""
    status_code = 409
