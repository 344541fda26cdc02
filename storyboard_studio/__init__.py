"""
Storyboard Studio Generation Pipeline

Turns a scene description into an ordered sequence of illustrated storyboard
panels: one planning call for the panel texts, then one concurrent image call
per panel.
"""

from .artifact import (
    SceneRequest,
    PanelPlan,
    PanelPlanList,
    SynthesizedPanel,
    SynthesisOutcome,
    StoryboardResult,
    StoryboardProgress,
    ProgressStatus,
    StrictModel,
    validate_scene_request
)

from .errors import (
    StoryboardError,
    ValidationError,
    PlanningError,
    PLANNING_FAILED_MESSAGE
)

from .config import (
    GenerationStep,
    select_model_for_step
)

from .planner import (
    build_planning_prompt,
    plan_storyboard
)

from .synthesizer import (
    IMAGE_TIMEOUT_SECONDS,
    SAFETY_SETTINGS,
    build_image_prompt,
    placeholder_image_ref,
    synthesize_panel
)

from .artifact_adapters import (
    assemble_storyboard,
    summarize_outcomes,
    storyboard_to_shot_list_string
)

from .pipeline import (
    generate_storyboard,
    generate_storyboard_sync
)

from .utils import (
    save_storyboard_json,
    save_panel_images,
    create_storyboard_collage
)

__all__ = [
    # Core models
    "SceneRequest",
    "PanelPlan",
    "PanelPlanList",
    "SynthesizedPanel",
    "SynthesisOutcome",
    "StoryboardResult",
    "StoryboardProgress",
    "ProgressStatus",
    "StrictModel",
    "validate_scene_request",

    # Errors
    "StoryboardError",
    "ValidationError",
    "PlanningError",
    "PLANNING_FAILED_MESSAGE",

    # Configuration
    "GenerationStep",
    "select_model_for_step",

    # Generation steps
    "build_planning_prompt",
    "plan_storyboard",
    "IMAGE_TIMEOUT_SECONDS",
    "SAFETY_SETTINGS",
    "build_image_prompt",
    "placeholder_image_ref",
    "synthesize_panel",

    # Assembly
    "assemble_storyboard",
    "summarize_outcomes",
    "storyboard_to_shot_list_string",

    # Pipeline
    "generate_storyboard",
    "generate_storyboard_sync",

    # Utils
    "save_storyboard_json",
    "save_panel_images",
    "create_storyboard_collage"
]
