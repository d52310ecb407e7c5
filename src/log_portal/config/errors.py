from __future__ import annotations

"""Exception types for configuration handling."""

from ..errors import PortalError


class ConfigurationError(PortalError):
    """Raised when configuration values are missing or malformed."""

    @classmethod
    def missing_value(cls, param_name: str, context: str = "") -> "ConfigurationError":
        """Create error for missing value."""
        msg = f"{param_name} is missing or empty"
        if context:
            msg += f": {context}"
        return cls(msg)

    @classmethod
    def invalid_value(cls, param_name: str, value, reason: str = "") -> "ConfigurationError":
        """Create error for invalid value."""
        msg = f"Invalid value for {param_name}: {value!r}"
        if reason:
            msg += f". {reason}"
        return cls(msg)

    @classmethod
    def invalid_timezone(cls, tz_name: str) -> "ConfigurationError":
        """Create error for an unknown timezone name."""
        return cls(f"Invalid timezone '{tz_name}'")

    @classmethod
    def setup_failed(cls, resource: str, identifier: str = "") -> "ConfigurationError":
        """Create error for a failed startup step."""
        msg = f"Failed to set up {resource}"
        if identifier:
            msg += f" [{identifier}]"
        return cls(msg)


__all__ = ["ConfigurationError"]
