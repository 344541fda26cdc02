"""
Generation steps and model selection.

Models can be overridden from the environment (or a .env file loaded by the
calling script):
- STORYBOARD_TEXT_MODEL
- STORYBOARD_IMAGE_MODEL
- STORYBOARD_REASONING_EFFORT
"""

import os
from enum import Enum
from typing import Tuple

DEFAULT_TEXT_MODEL = "google/gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "google/gemini-2.5-flash-image-preview"
DEFAULT_REASONING_EFFORT = "minimal"


# ---------- Generation Steps ----------

class GenerationStep(Enum):
    PANEL_DESCRIPTIONS = "panel_descriptions"
    PANEL_IMAGES = "panel_images"


# ---------- Model Selection ----------

def select_model_for_step(step: GenerationStep) -> Tuple[str, str]:
    """Select model and reasoning effort for a generation step.

    Args:
        step: The generation step

    Returns:
        Tuple of (model_name, reasoning_effort)
        Note: reasoning_effort is ignored for image generation
    """
    reasoning = os.getenv("STORYBOARD_REASONING_EFFORT", DEFAULT_REASONING_EFFORT)

    if step == GenerationStep.PANEL_IMAGES:
        return os.getenv("STORYBOARD_IMAGE_MODEL", DEFAULT_IMAGE_MODEL), reasoning

    return os.getenv("STORYBOARD_TEXT_MODEL", DEFAULT_TEXT_MODEL), reasoning
