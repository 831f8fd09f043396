from __future__ import annotations


class PostgenError(Exception):
    pass


class ValidationError(PostgenError):
    pass


class ReadError(PostgenError):
    pass


class WriteError(PostgenError):
    pass


class ConfigError(PostgenError):
    pass


class IndexUpdateWarning(PostgenError, UserWarning):
    """Raised when the index listing cannot be updated; callers log and skip."""
