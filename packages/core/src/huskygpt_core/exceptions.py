"""Exception hierarchy for huskygpt."""


class HuskyGPTError(Exception):
    """Base exception for all huskygpt errors."""


class ConfigError(HuskyGPTError):
    """Configuration could not be loaded or validated."""


class ReadError(HuskyGPTError):
    """Changed files could not be read from git or disk."""
