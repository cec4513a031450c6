"""Custom exceptions for Google Calendar sync."""


class CalendarSyncError(Exception):
    """Base exception for calendar sync errors."""


class CredentialMissingError(CalendarSyncError):
    """Raised when client id or client secret is not configured."""


class TokenExchangeError(CalendarSyncError):
    """Raised when exchanging a code or refresh token fails."""


class NoEventsError(CalendarSyncError):
    """Raised when the provider returns no events for a window."""


class ProviderQueryError(CalendarSyncError):
    """Raised when listing calendars or events fails."""


class ConfigurationError(CalendarSyncError):
    """Raised when configuration is invalid."""
