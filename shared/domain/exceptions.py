"""
Domain Errors

Framework-free error taxonomy raised by domain functions and application
services. Each error carries the HTTP status it maps to at the API boundary,
a short machine-readable code and a human-readable message.
"""


class DomainError(Exception):
    """Base class for all errors raised by the domain layer"""
    status_code = 400
    default_code = 'error'
    default_message = 'Request could not be processed.'

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(self.message)


class ValidationError(DomainError):
    """Missing or malformed required field"""
    status_code = 400
    default_code = 'validation_error'
    default_message = 'Invalid input.'


class NotFoundError(DomainError):
    """Referenced lot, booking or notification does not exist"""
    status_code = 404
    default_code = 'not_found'
    default_message = 'Not found.'


class ForbiddenError(DomainError):
    """Actor lacks permission or role for the action"""
    status_code = 403
    default_code = 'forbidden'
    default_message = 'You do not have permission to perform this action.'


class ConflictError(DomainError):
    """Capacity exhausted for the requested window"""
    status_code = 409
    default_code = 'conflict'
    default_message = 'Parking is not available for the selected time slot.'


class StateError(DomainError):
    """Guard violated: wrong status, already done, outside the allowed time window"""
    status_code = 400
    default_code = 'invalid_state'
    default_message = 'Operation is not allowed in the current booking state.'


class DuplicateKeyError(DomainError):
    """Unique constraint violated (e.g. QR token collision)"""
    status_code = 400
    default_code = 'duplicate_key'
    default_message = 'A record with this value already exists.'


class AuthError(DomainError):
    """Invalid or expired credentials"""
    status_code = 401
    default_code = 'not_authenticated'
    default_message = 'Authentication credentials were not provided or are invalid.'
