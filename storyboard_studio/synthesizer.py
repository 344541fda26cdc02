"""
Panel image synthesis (stage 2).

Resolves one PanelPlan to one SynthesizedPanel. Never raises: a missing image
or a failed/timed-out backend call becomes a labelled placeholder.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel

from openrouter_wrapper import generate_image_async

from .artifact import PanelPlan, SynthesizedPanel, SynthesisOutcome
from .config import GenerationStep, select_model_for_step

IMAGE_TIMEOUT_SECONDS = 30

PLACEHOLDER_BASE = "https://placehold.co/512x384.png"

SAFETY_SETTINGS: List[Dict[str, str]] = [
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_ONLY_HIGH"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_ONLY_HIGH"},
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_ONLY_HIGH"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_ONLY_HIGH"},
]

STORYBOARD_FRAMING = (
    "Focus on clear visual storytelling for a storyboard frame. "
    "Simple lines or sketch style preferred if possible, but adhere to the core description."
)

IMAGE_CONTEXT = "Generate storyboard panel images. Output: image only, no text or captions."

_PLACEHOLDER_LABELS = {
    SynthesisOutcome.NO_MEDIA: "Image+Gen+Failed",
    SynthesisOutcome.ERROR: "Image+Error",
}


# ---------- Backend response shape ----------

class Media(BaseModel):
    url: Optional[str] = None


class ImageResponse(BaseModel):
    media: Optional[Media] = None


ImageBackend = Callable[..., Awaitable[Any]]


# ---------- Prompt / placeholder builders ----------

def build_image_prompt(plan: PanelPlan, style_preset: Optional[str] = None) -> str:
    prompt = f"Generate a storyboard panel image. Scene: {plan.description}. Shot: {plan.shot_details}."
    if style_preset:
        prompt += f" Style: {style_preset}."
    prompt += f" {STORYBOARD_FRAMING}"
    return prompt


def placeholder_image_ref(outcome: SynthesisOutcome, panel_number: int) -> str:
    """Deterministic placeholder URL for a failed panel."""
    label = _PLACEHOLDER_LABELS[outcome]
    return f"{PLACEHOLDER_BASE}?text={label}+P{panel_number}"


def _media_url(response: Any) -> Optional[str]:
    """Pull media.url out of an ImageResponse or an equivalent mapping."""
    if response is None:
        return None
    if isinstance(response, Mapping):
        response = ImageResponse.model_validate(dict(response))
    media = getattr(response, "media", None)
    if media is None:
        return None
    if isinstance(media, Mapping):
        url = media.get("url")
    else:
        url = getattr(media, "url", None)
    if url and not isinstance(url, str):
        raise TypeError(f"media.url must be a string, got {type(url).__name__}")
    return url or None


# ---------- Default backend ----------

async def openrouter_image_backend(prompt: str, *, safety_settings: List[Dict[str, str]], timeout: float) -> ImageResponse:
    """Default image backend: one OpenRouter image request."""
    model, _ = select_model_for_step(GenerationStep.PANEL_IMAGES)

    image_url, _ = await generate_image_async(
        model=model,
        text=prompt,
        context=IMAGE_CONTEXT,
        safety_settings=safety_settings,
        timeout=timeout,
    )
    if not image_url:
        return ImageResponse(media=None)
    return ImageResponse(media=Media(url=image_url))


# ---------- Synthesis ----------

async def synthesize_panel(
    plan: PanelPlan,
    style_preset: Optional[str] = None,
    image_backend: Optional[ImageBackend] = None,
    timeout: Optional[float] = None,
) -> SynthesizedPanel:
    """Generate the image for one panel.

    Args:
        plan: Panel plan from stage 1
        style_preset: Optional visual style from the request
        image_backend: Optional replacement for the OpenRouter image backend
        timeout: Seconds to wait before treating the call as failed (defaults to IMAGE_TIMEOUT_SECONDS)

    Returns:
        SynthesizedPanel; failures are reported through synthesis_outcome
    """
    backend = image_backend or openrouter_image_backend
    prompt = build_image_prompt(plan, style_preset)
    if timeout is None:
        timeout = IMAGE_TIMEOUT_SECONDS

    try:
        response = await asyncio.wait_for(
            backend(prompt, safety_settings=SAFETY_SETTINGS, timeout=timeout),
            timeout=timeout,
        )
        image_url = _media_url(response)
    except asyncio.TimeoutError:
        print(f"  ❌ Image generation timed out for panel {plan.panel_number} after {timeout}s")
        return SynthesizedPanel.from_plan(
            plan, placeholder_image_ref(SynthesisOutcome.ERROR, plan.panel_number), SynthesisOutcome.ERROR
        )
    except Exception as e:
        print(f"  ❌ Error generating image for panel {plan.panel_number}: {str(e)[:200]}")
        return SynthesizedPanel.from_plan(
            plan, placeholder_image_ref(SynthesisOutcome.ERROR, plan.panel_number), SynthesisOutcome.ERROR
        )

    if not image_url:
        print(f"  ⚠️  Image generation failed for panel {plan.panel_number}. No media URL returned.")
        return SynthesizedPanel.from_plan(
            plan, placeholder_image_ref(SynthesisOutcome.NO_MEDIA, plan.panel_number), SynthesisOutcome.NO_MEDIA
        )

    return SynthesizedPanel.from_plan(plan, image_url, SynthesisOutcome.SUCCESS)
