"""Exceptions raised by herbie_lint."""


class HerbieLintError(Exception):
    """Base class for herbie_lint errors."""


class ConfigError(HerbieLintError):
    """Invalid configuration file or value."""


class StoreError(HerbieLintError):
    """The rule store could not be opened, read or written."""
