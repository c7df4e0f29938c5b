"""Custom exceptions for J-Dep Resolver."""


class JDepError(Exception):
    """Base exception for J-Dep Resolver."""


class PomNotFoundError(JDepError):
    """Raised when a POM file cannot be found."""


class PomParseError(JDepError):
    """Raised when a POM file cannot be parsed."""


class PomModelError(JDepError):
    """Raised when required Maven model fields are missing or invalid."""


class DeclarationError(JDepError):
    """Raised when a build-unit declaration cannot be loaded."""


class ConfigError(JDepError):
    """Raised when resolver configuration is missing or invalid."""
