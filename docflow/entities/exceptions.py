from docflow.processor.exceptions import DependencyError


class EntityRecognitionError(DependencyError):
    """Raised when entity recognition fails."""


class EntityValidationError(EntityRecognitionError):
    """Raised when a provider response does not describe valid entities."""


class EntityNetworkError(EntityRecognitionError):
    """Raised when the provider call fails due to network/infrastructure issues."""
