"""Exception hierarchy with details and fix suggestions."""

from typing import Optional, Dict, Any


class PipelineGuardianError(Exception):
    """Base exception for all Pipeline Guardian errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None
    ):
        """
        Initialize exception with context.

        Args:
            message: Error message
            details: Additional error details
            suggestion: Suggested fix for the user
        """
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format complete error message."""
        parts = [self.message]

        if self.details:
            parts.append("\nDetails:")
            for key, value in self.details.items():
                parts.append(f"  {key}: {value}")

        if self.suggestion:
            parts.append(f"\n💡 Suggestion: {self.suggestion}")

        return "\n".join(parts)


# Scan errors
class ScanError(PipelineGuardianError):
    """Error during scanning operation."""
    pass


class InvalidTargetError(ScanError):
    """Scan root cannot be traversed."""
    pass


class InvalidFilterError(ScanError):
    """Unknown finding filter criterion."""
    pass


# Configuration errors
class ConfigError(PipelineGuardianError):
    """Configuration-related error."""
    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration value."""
    pass


class InvalidRuleError(InvalidConfigError):
    """Detection rule cannot be compiled or is duplicated."""
    pass


class MissingConfigError(ConfigError):
    """Required configuration is missing."""
    pass


# Output errors
class OutputError(PipelineGuardianError):
    """Rendering or writing findings failed."""
    pass
