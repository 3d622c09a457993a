"""Error taxonomy for marketplace operations.

Services raise these; the app factory maps them to JSON responses.

- ValidationError: malformed or missing input. Subclasses ValueError so
  callers that only care about "bad input" can keep catching ValueError.
- AuthorizationError: acting user does not own / administer the target.
- NotFoundError: referenced row does not exist.
- PreconditionError: entity is in the wrong state for the operation.
- DependencyError: the store (or a lookup behind it) failed.

None of these leave partial state behind: services raise before mutating,
or roll back to a savepoint first.
"""


class MarketplaceError(Exception):
    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {"ok": False, "error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(MarketplaceError, ValueError):
    status_code = 400


class AuthorizationError(MarketplaceError):
    status_code = 403


class NotFoundError(MarketplaceError):
    status_code = 404


class PreconditionError(MarketplaceError):
    status_code = 409


class DependencyError(MarketplaceError):
    status_code = 503
