"""
Storyboard Studio Exceptions

Only ValidationError and PlanningError cross the pipeline boundary.
Per-panel image failures never raise; they become placeholder panels.
"""

PLANNING_FAILED_MESSAGE = "Failed to generate textual descriptions for storyboard panels."


class StoryboardError(Exception):
    """Base exception for storyboard generation errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(StoryboardError, ValueError):
    """Raised when a scene request is malformed."""
    pass


class PlanningError(StoryboardError):
    """Raised when the text backend yields no usable panel plans."""

    def __init__(self, details: dict = None):
        super().__init__(PLANNING_FAILED_MESSAGE, details)

    def __str__(self):
        # The message is surfaced verbatim to callers.
        return self.message
