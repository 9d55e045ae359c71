"""Custom exceptions for the cf application."""


class CodeforcesError(Exception):
    """Base exception for all cf errors."""

    def __init__(self, message: str = "An error occurred while talking to Codeforces") -> None:
        self.message = message
        super().__init__(self.message)


class SessionExpiredError(CodeforcesError):
    """Raised when the server still treats us as anonymous after a re-login."""

    def __init__(
        self, message: str = "Session expired and logging in again did not help. Run 'cf login' and retry."
    ) -> None:
        super().__init__(message)


class LoginError(CodeforcesError):
    """Raised when the login sequence cannot be completed."""

    def __init__(self, message: str = "Login failed") -> None:
        super().__init__(message)


class InvalidCredentialsError(LoginError):
    """Raised when Codeforces rejects the handle/email and password."""

    def __init__(
        self, message: str = "Codeforces rejected the handle or password. Run 'cf config' to re-enter them."
    ) -> None:
        super().__init__(message)


class MissingCredentialsError(InvalidCredentialsError):
    """Raised when a login is needed but no credentials are configured."""

    def __init__(
        self, message: str = "No credentials configured. Run 'cf config' to set your handle and password."
    ) -> None:
        super().__init__(message)


class ChallengeBlockedError(CodeforcesError):
    """Raised when Codeforces serves an interactive challenge page."""

    def __init__(
        self,
        message: str = "Codeforces served a browser verification page. Open the site in a browser, pass the check and retry.",
    ) -> None:
        super().__init__(message)


class SessionFileError(CodeforcesError):
    """Raised when the session file can't be written."""

    def __init__(self, message: str = "Failed to save session file") -> None:
        super().__init__(message)
