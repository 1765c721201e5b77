"""
Base interface for pipeline stages.
"""

import random
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel

from ..utils.logging import StageLogger


class PipelineStage(ABC):
    """Base interface for every stage of the response pipeline."""

    def __init__(self, config: BaseModel, rng: Optional[random.Random] = None):
        """Initialize the stage with configuration.

        Args:
            config: Stage-specific configuration model
            rng: Random source for stages that draw phrasing variants
        """
        self.config = config
        self.rng = rng or random.Random()
        self.logger = StageLogger(self.stage_type)
        self.logger.debug(f"Initialized {self.stage_type} stage")

    @property
    @abstractmethod
    def stage_type(self) -> str:
        """Return the type of the stage."""
        pass
