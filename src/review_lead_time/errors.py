"""Custom exception types for the PR review lead time report."""


class LeadTimeError(Exception):
    """Base exception for all expected review lead time errors."""


class ConfigurationError(LeadTimeError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(LeadTimeError):
    """Raised when the GitHub access token is unavailable or rejected."""


class ApiError(LeadTimeError):
    """Raised when a GitHub API request fails or returns an unexpected response."""


class DataValidationError(LeadTimeError):
    """Raised when API payloads are missing fields or carry malformed timestamps."""
