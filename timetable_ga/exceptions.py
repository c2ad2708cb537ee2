class SchedulerError(Exception):
    """Base class for all scheduler exceptions."""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CatalogueError(SchedulerError):
    """Raised when the input catalogue cannot be searched (empty or inconsistent)."""


class ConfigError(SchedulerError):
    """Raised when the genetic algorithm parameters are invalid."""
