"""
Panel planning (stage 1).

Turns a validated SceneRequest into numbered panel plans with one call to the
text backend. No retries: a failed call or an empty or unusable answer raises
PlanningError.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from openrouter_wrapper import llm_async

from .artifact import PanelPlanList, SceneRequest
from .config import GenerationStep, select_model_for_step
from .errors import PlanningError

TextBackend = Callable[[str, Type[BaseModel]], Awaitable[Optional[BaseModel]]]


# ---------- Embedded Planning Guide ----------

PLANNING_GUIDE = """
# Storyboard Panel Guide

You are a storyboard assistant. Based on the user's scene description, number of
panels, and optional style preset, generate textual details for each storyboard panel.

For each panel, provide:
- panelNumber: The sequence number (starting from 1).
- description: A concise but vivid description of the visual scene for THIS SPECIFIC
  PANEL. Focus on what should be drawn. What are the characters doing? What is the key
  framing element?
- shotDetails: The camera shot type and angle (e.g., "Medium Close-Up, eye-level",
  "Wide Shot, high angle", "Point-of-View shot").
- dialogueOrSound: (Optional) A very brief line of dialogue, key sound effect, or music
  note for this panel.

Also provide a 'titleSuggestion' for the overall storyboard sequence.

Ensure panelNumber is sequential.
Example for one panel object:
{
  "panelNumber": 1,
  "description": "A lone astronaut stands on a desolate red planet, looking at a strange, glowing artifact half-buried in the sand. Two moons hang in the purple sky.",
  "shotDetails": "Establishing Shot, wide angle",
  "dialogueOrSound": "Sound: Eerie hum"
}
"""


def build_planning_prompt(request: SceneRequest) -> str:
    """Build the user prompt for the planning call."""
    prompt = (
        f"Scene Description:\n{request.scene_description}\n\n"
        f"Number of Panels to Generate: {request.num_panels}\n"
    )
    if request.style_preset:
        prompt += (
            f"\nVisual Style Preset: \"{request.style_preset}\" - "
            "This style should influence your descriptions and shot suggestions.\n"
        )
    prompt += (
        "\nStructure your output as a JSON object with a \"panels\" array (each element being an "
        "object with panelNumber, description, shotDetails, and optional dialogueOrSound) and a "
        "\"titleSuggestion\" string."
    )
    return prompt


async def openrouter_text_backend(prompt: str, response_format: Type[BaseModel]) -> Optional[BaseModel]:
    """Default text backend: one structured OpenRouter call."""
    model, reasoning = select_model_for_step(GenerationStep.PANEL_DESCRIPTIONS)

    response, _, _ = await llm_async(
        model=model,
        text=prompt,
        context=PLANNING_GUIDE,
        response_format=response_format,
        reasoning_effort=reasoning,
        _caller="plan",
    )
    return response


async def plan_storyboard(request: SceneRequest, text_backend: Optional[TextBackend] = None) -> PanelPlanList:
    """Plan the panels for a scene.

    Args:
        request: Validated scene request
        text_backend: Optional replacement for the OpenRouter text backend

    Returns:
        PanelPlanList in the order the backend produced it

    Raises:
        PlanningError: if the backend call failed or returned nothing usable
    """
    backend = text_backend or openrouter_text_backend
    prompt = build_planning_prompt(request)

    try:
        output = await backend(prompt, PanelPlanList)
    except Exception as e:
        print(f"  ❌ Text generation failed: {str(e)[:200]}")
        raise PlanningError({"cause": str(e)}) from e

    # Backends may hand back the raw JSON object instead of the parsed model
    if isinstance(output, Mapping):
        try:
            output = PanelPlanList.model_validate(dict(output))
        except PydanticValidationError as e:
            raise PlanningError({"errors": e.errors(include_url=False)}) from e

    if not isinstance(output, PanelPlanList):
        raise PlanningError({"received_type": type(output).__name__})
    if not output.panels:
        raise PlanningError({"panel_count": 0})

    return output
