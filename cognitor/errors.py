from __future__ import annotations

class CognitorError(Exception):
    """Base class for every error the tool reports to the user."""

class ConfigError(CognitorError):
    pass

class ContextError(CognitorError):
    pass
