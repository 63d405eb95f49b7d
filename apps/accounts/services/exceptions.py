"""Domain-specific exceptions for accounts services."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""
    code = 'accounts_error'


class UserRegistrationError(AccountsServiceError):
    """Raised when user registration fails."""
    code = 'registration_failed'


class InvalidCredentialsError(AccountsServiceError):
    """Raised when authentication credentials are invalid."""
    code = 'invalid_credentials'


class InactiveAccountError(AccountsServiceError):
    """Raised when account is deactivated."""
    code = 'inactive_account'


class UserNotFoundError(AccountsServiceError):
    """Raised when user does not exist."""
    code = 'user_not_found'


class PasswordConfirmationError(AccountsServiceError):
    """Raised when password confirmation fails."""
    code = 'password_confirmation_failed'
