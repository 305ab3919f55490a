import json
import logging
import os
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .timing import CHUNK_DELAY

logger = logging.getLogger(__name__)


class GeneratorSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    frames_dir: str = "frames"
    threshold: int = Field(127, ge=0, le=255)  # luma > threshold => on
    flip_vertical: bool = True  # image row 0 is the top board
    timing_delay: int = Field(10, gt=CHUNK_DELAY)
    pixel_delay: int = Field(1, gt=0)
    chunk_interval: int = Field(200, gt=0)  # frames between chunk delayers
    row_spacing: int = Field(900, gt=0)  # fixed point, 1000 per unit
    board_color: Tuple[int, int, int] = (51, 51, 51)

    @field_validator("board_color")
    @classmethod
    def _check_color(cls, value: Tuple[int, int, int]) -> Tuple[int, int, int]:
        for component in value:
            if not 0 <= component <= 255:
                raise ValueError(f"board_color component {component} is outside 0..255")
        return value

    @property
    def compensation_period(self) -> int:
        """Timing chain positions between compensated (shortened) delayers."""
        return 2 * self.chunk_interval


class SettingsManager:
    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path

    def load(self, **overrides) -> GeneratorSettings:
        """Read the JSON config (if any) and apply non-None overrides on top."""
        data = self.load_config()
        data.update({k: v for k, v in overrides.items() if v is not None})
        settings = GeneratorSettings(**data)
        logger.debug(f"Settings: {settings.model_dump()}")
        return settings

    def load_config(self) -> dict:
        if self.config_path and os.path.exists(self.config_path):
            with open(self.config_path, "r", encoding="utf-8") as f:
                logger.info(f"Loading config from {self.config_path}")
                return json.load(f)
        if self.config_path:
            logger.warning(f"Config file {self.config_path} not found, using defaults")
        return {}

    def save_config(self, settings: GeneratorSettings):
        with open(self.config_path, "w", encoding="utf-8") as f:
            f.write(settings.model_dump_json(indent=4))
