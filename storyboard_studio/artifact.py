from __future__ import annotations

from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError

DEFAULT_NUM_PANELS = 6
MIN_NUM_PANELS = 2
MAX_NUM_PANELS = 10
MIN_SCENE_DESCRIPTION_LENGTH = 20


# ---------- Base (camelCase on the wire) ----------

class StrictModel(BaseModel):
    """Base model that rejects unknown fields to keep outputs clean.

    Inputs coming from callers or the text backend (SceneRequest, PanelPlan,
    PanelPlanList) drop unknown keys instead.

    Fields are snake_case in Python and camelCase on the wire; both spellings
    are accepted on input.
    """
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------- Request ----------

class SceneRequest(StrictModel):
    """A validated request to storyboard one scene."""
    model_config = ConfigDict(extra="ignore")

    scene_description: str = Field(
        ...,
        min_length=MIN_SCENE_DESCRIPTION_LENGTH,
        description="A detailed description of the scene to be storyboarded, including setting, characters, key actions, and overall mood.",
    )
    num_panels: int = Field(
        DEFAULT_NUM_PANELS,
        ge=MIN_NUM_PANELS,
        le=MAX_NUM_PANELS,
        description="The desired number of storyboard panels to generate (between 2 and 10).",
    )
    style_preset: Optional[str] = Field(
        None,
        description="Optional style preset guiding the visual style of the images (e.g., 'Cinematic Noir', 'Anime Action').",
    )

    @field_validator("num_panels", mode="before")
    @classmethod
    def _default_when_none(cls, value: Any) -> Any:
        return DEFAULT_NUM_PANELS if value is None else value


# ---------- Panel plan (stage 1 output) ----------

class PanelPlan(StrictModel):
    """Textual plan for a single storyboard panel."""
    model_config = ConfigDict(extra="ignore")

    panel_number: int = Field(..., gt=0, description="The sequence number of this storyboard panel, starting from 1.")
    description: str = Field(..., description="Visual content of this panel: character actions, expressions, and key background elements. Used to generate the image.")
    shot_details: str = Field(..., description="Camera shot type, angle, and movement (e.g., 'Medium shot, eye-level, static').")
    dialogue_or_sound: Optional[str] = Field(None, description="Brief dialogue, key sound effect, or music cue for this panel.")


class PanelPlanList(StrictModel):
    """Structured output requested from the text backend."""
    model_config = ConfigDict(extra="ignore")

    panels: List[PanelPlan] = Field(default_factory=list, description="One entry per storyboard panel.")
    title_suggestion: Optional[str] = Field(None, description="A suggested title for the storyboard sequence.")


# ---------- Synthesized panel (stage 2 output) ----------

class SynthesisOutcome(str, Enum):
    SUCCESS = "success"
    NO_MEDIA = "no-media"
    ERROR = "error"


class SynthesizedPanel(PanelPlan):
    """A panel plan together with its image reference."""
    model_config = ConfigDict(extra="forbid")

    image_ref: str = Field(..., description="Generated image data URI, or a placeholder image URL.")
    synthesis_outcome: SynthesisOutcome = Field(..., description="How image synthesis for this panel ended.")

    @computed_field
    @property
    def alt(self) -> str:
        return self.description

    @classmethod
    def from_plan(cls, plan: PanelPlan, image_ref: str, outcome: SynthesisOutcome) -> "SynthesizedPanel":
        return cls(
            **plan.model_dump(),
            image_ref=image_ref,
            synthesis_outcome=outcome,
        )


# ---------- Final result ----------

class StoryboardResult(StrictModel):
    """Panels sorted by panel number plus the optional title."""
    panels: List[SynthesizedPanel] = Field(..., description="Storyboard panels in ascending panel_number order.")
    title_suggestion: Optional[str] = Field(None, description="Suggested title, passed through from planning.")


# ---------- Progress events ----------

class ProgressStatus(str, Enum):
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


class StoryboardProgress(StrictModel):
    """Progress update emitted while a storyboard is generated."""
    status: ProgressStatus
    progress: float = Field(0.0, ge=0.0, le=100.0, description="Percentage of panels settled.")
    message: Optional[str] = None
    panel_number: Optional[int] = None
    result: Optional[StoryboardResult] = None


# ---------- Validation ----------

def validate_scene_request(data: Union[SceneRequest, Mapping[str, Any]]) -> SceneRequest:
    """Validate raw input and return a normalized SceneRequest.

    Accepts camelCase or snake_case keys. Applies num_panels=6 when absent.

    Raises:
        ValidationError: if the input is malformed
    """
    if isinstance(data, SceneRequest):
        return data
    if not isinstance(data, Mapping):
        raise ValidationError(
            "Scene request must be a mapping.",
            {"received_type": type(data).__name__},
        )

    try:
        return SceneRequest.model_validate(dict(data))
    except PydanticValidationError as e:
        errors = [
            {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("Invalid scene request.", {"errors": errors}) from e
