"""Genetic-algorithm search for weekly class timetables."""
from .config import GAConfig, load_config
from .data_loader import catalogue_from_dict, load_catalogue, resolve_schedule
from .exceptions import CatalogueError, ConfigError, SchedulerError
from .ga import generate_schedule
from .model import (
    Candidate,
    Catalogue,
    Classroom,
    Day,
    Faculty,
    FacultyPreferences,
    ScheduledClass,
    ScheduleResult,
    Subject,
    TimeSlot,
    Unsatisfiable,
)

__all__ = [
    "Candidate",
    "Catalogue",
    "CatalogueError",
    "Classroom",
    "ConfigError",
    "Day",
    "Faculty",
    "FacultyPreferences",
    "GAConfig",
    "ScheduleResult",
    "ScheduledClass",
    "SchedulerError",
    "Subject",
    "TimeSlot",
    "Unsatisfiable",
    "catalogue_from_dict",
    "generate_schedule",
    "load_catalogue",
    "load_config",
    "resolve_schedule",
]
