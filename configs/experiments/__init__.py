from .base import BaseExperiment

__all__ = ["BaseExperiment"]
