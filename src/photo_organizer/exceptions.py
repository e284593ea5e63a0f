"""Custom exceptions for photo organizer."""

from typing import List, Optional


class PhotoOrganizerError(Exception):
    """Base exception for photo organizer errors."""
    pass


class RuleError(PhotoOrganizerError):
    """Raised when a rule cannot be created or edited."""
    pass


class InvalidPatternError(RuleError):
    """Raised when a rule pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern '{pattern}': {reason}")


class DuplicateRuleError(RuleError):
    """Raised when a rule id is already present in the rule set."""
    pass


class RuleNotFoundError(RuleError):
    """Raised when a rule id is not present in the rule set."""
    pass


class RuleValidationError(PhotoOrganizerError):
    """Raised when a rules file does not satisfy the rule schema."""

    def __init__(self, errors: List[str], source: Optional[str] = None):
        self.errors = errors
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Invalid rules{where}: " + "; ".join(errors))


class ConfigurationError(PhotoOrganizerError):
    """Raised when there's an error in configuration."""
    pass


class PackagingError(PhotoOrganizerError):
    """Raised when the organized archive cannot be written."""
    pass


class FaceAnalysisError(PhotoOrganizerError):
    """Raised when face descriptors cannot be extracted."""
    pass
