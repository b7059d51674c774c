"""Domain error taxonomy.

Every rule violation raised by the services is a GatekeeperError subclass. Each
class carries a machine-readable ``code`` and the HTTP ``status_code`` the API
layer answers with, so routes never map errors by hand.
"""


class GatekeeperError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400
    code: str = "error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# Not found


class NotFoundError(GatekeeperError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class UserNotFoundError(NotFoundError):
    code = "user_not_found"
    default_message = "User not found"


class RoleNotFoundError(NotFoundError):
    code = "role_not_found"
    default_message = "Role not found"


class PermissionNotFoundError(NotFoundError):
    code = "permission_not_found"
    default_message = "Permission not found"


# Uniqueness


class AlreadyExistsError(GatekeeperError):
    status_code = 409
    code = "already_exists"
    default_message = "Resource already exists"


class UsernameExistsError(AlreadyExistsError):
    code = "username_exists"
    default_message = "Username already exists"


class EmailExistsError(AlreadyExistsError):
    code = "email_exists"
    default_message = "Email already in use"


class RoleExistsError(AlreadyExistsError):
    code = "role_exists"
    default_message = "Role already exists"


class PermissionExistsError(AlreadyExistsError):
    code = "permission_exists"
    default_message = "Permission already exists"


# Referential safety


class InUseError(GatekeeperError):
    status_code = 409
    code = "in_use"
    default_message = "Resource is in use"


class RoleInUseError(InUseError):
    code = "role_in_use"
    default_message = "Role is assigned to users and cannot be deleted"


class PermissionInUseError(InUseError):
    code = "permission_in_use"
    default_message = "Permission is granted to roles and cannot be deleted"


# Authentication


class InvalidCredentialsError(GatekeeperError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid username or password"


class NotAuthenticatedError(GatekeeperError):
    status_code = 401
    code = "not_authenticated"
    default_message = "Not authenticated"


class PermissionDeniedError(GatekeeperError):
    status_code = 403
    code = "permission_denied"
    default_message = "Insufficient permissions"


class TokenError(GatekeeperError):
    status_code = 401
    code = "token_error"
    default_message = "Token rejected"


class TokenExpiredError(TokenError):
    code = "token_expired"
    default_message = "Token has expired"


class TokenInvalidError(TokenError):
    code = "token_invalid"
    default_message = "Invalid token"


class InvalidTokenTypeError(TokenError):
    code = "invalid_token_type"
    default_message = "Invalid token type"


# Password digests


class InvalidHashError(GatekeeperError):
    status_code = 500
    code = "invalid_hash"
    default_message = "The encoded password hash is not in the correct format"


class IncompatibleHashVersionError(GatekeeperError):
    status_code = 500
    code = "incompatible_hash_version"
    default_message = "Incompatible argon2 version"


# Persistence


class InfrastructureError(GatekeeperError):
    status_code = 503
    code = "infrastructure_error"
    default_message = "Database error"


class WriteConflictError(InfrastructureError):
    """A write lost a race against a concurrent one on a unique index."""

    status_code = 409
    code = "write_conflict"
    default_message = "Conflicting concurrent write"
