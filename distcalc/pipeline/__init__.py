"""Application layer: run a complete distance computation from an ``AppConfig``."""

from .orchestrator import DistanceApplication
from .output import OutputManager

__all__ = ["DistanceApplication", "OutputManager"]
