"""Custom exceptions for Renoplan."""


class RenoplanError(Exception):
    """Base exception for all Renoplan errors."""

    pass


class ValidationError(RenoplanError):
    """Raised when validation fails."""

    pass


class CircularDependencyError(ValidationError):
    """Raised when a circular dependency is detected and cycles are not tolerated."""

    pass


class MissingReferenceError(ValidationError):
    """Raised when a task depends on an ID that is not in the request."""

    def __init__(self, task_id: str, dependency_id: str):
        self.task_id = task_id
        self.dependency_id = dependency_id
        super().__init__(f"Task '{task_id}' depends on unknown task '{dependency_id}'")


class ParseError(RenoplanError):
    """Raised when a request or modification file cannot be parsed."""

    pass


class AdvisorError(RenoplanError):
    """Raised by a cross-trade advisor when it cannot produce suggestions."""

    pass


class OptimizationCancelled(RenoplanError):
    """Raised when the caller cancels an optimization in flight."""

    pass
