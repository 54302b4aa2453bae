class ConfigurationError(Exception):
    """Raised when the application configuration is invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when a required setting is absent or empty."""
