"""Google Calendar "today's events" cache with OAuth2 token lifecycle management."""

__version__ = "0.1.0"
