"""
Storyboard Generation Pipeline

Orchestrates the two generation steps for one scene:
1. PANEL_DESCRIPTIONS: one planning call to the text backend
2. PANEL_IMAGES: one concurrent image task per planned panel

Image tasks absorb their own failures, so the join never fails. Only request
validation and planning errors reach the caller.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping, Optional, Union

from .artifact import (
    PanelPlan,
    ProgressStatus,
    SceneRequest,
    StoryboardProgress,
    StoryboardResult,
    SynthesizedPanel,
    SynthesisOutcome,
    validate_scene_request,
)
from .artifact_adapters import assemble_storyboard, summarize_outcomes
from .errors import StoryboardError
from .planner import TextBackend, plan_storyboard
from .synthesizer import ImageBackend, synthesize_panel

ProgressCallback = Callable[[StoryboardProgress], Any]


def _report(on_progress: Optional[ProgressCallback], **event) -> None:
    """Send a progress event; a failing callback never affects the pipeline."""
    if on_progress is None:
        return
    try:
        on_progress(StoryboardProgress(**event))
    except Exception as e:
        print(f"  ⚠️  Progress callback failed: {str(e)[:100]}")


async def generate_storyboard(
    request_data: Union[SceneRequest, Mapping[str, Any]],
    text_backend: Optional[TextBackend] = None,
    image_backend: Optional[ImageBackend] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> StoryboardResult:
    """Run the complete storyboard pipeline for one scene.

    Args:
        request_data: SceneRequest or a mapping with sceneDescription, numPanels, stylePreset
        text_backend: Optional replacement for the OpenRouter text backend
        image_backend: Optional replacement for the OpenRouter image backend
        on_progress: Optional callback receiving StoryboardProgress events

    Returns:
        StoryboardResult with panels sorted by panel number

    Raises:
        ValidationError: if the request is malformed
        PlanningError: if planning produced no usable panels
    """
    try:
        request = validate_scene_request(request_data)

        print(f"🎬 Planning {request.num_panels} storyboard panels")
        _report(on_progress, status=ProgressStatus.PROCESSING, progress=0.0, message="Planning panels...")

        plan = await plan_storyboard(request, text_backend=text_backend)
    except StoryboardError as e:
        print(f"  ❌ {e.message}")
        _report(on_progress, status=ProgressStatus.ERROR, message=e.message)
        raise

    total = len(plan.panels)
    if total != request.num_panels:
        print(f"  ⚠️  Requested {request.num_panels} panels, planner returned {total}")
    print(f"  ✅ Planned {total} panels")
    _report(on_progress, status=ProgressStatus.PROCESSING, progress=0.0, message=f"Planned {total} panels")

    settled = 0

    async def _synthesize(panel_plan: PanelPlan) -> SynthesizedPanel:
        nonlocal settled
        panel = await synthesize_panel(panel_plan, request.style_preset, image_backend=image_backend)
        settled += 1
        _report(
            on_progress,
            status=ProgressStatus.PROCESSING,
            progress=settled / total * 100,
            message=f"Generated panel {settled} of {total}",
            panel_number=panel.panel_number,
        )
        return panel

    print(f"🎨 Generating {total} panel images")
    panels = await asyncio.gather(*(_synthesize(panel_plan) for panel_plan in plan.panels))

    result = assemble_storyboard(panels, plan.title_suggestion)

    counts = summarize_outcomes(result)
    print(
        f"\n📊 Panel images: {counts[SynthesisOutcome.SUCCESS]} success, "
        f"{counts[SynthesisOutcome.NO_MEDIA]} no media, {counts[SynthesisOutcome.ERROR]} failed"
    )
    _report(on_progress, status=ProgressStatus.SUCCESS, progress=100.0, result=result)

    return result


def generate_storyboard_sync(
    request_data: Union[SceneRequest, Mapping[str, Any]],
    text_backend: Optional[TextBackend] = None,
    image_backend: Optional[ImageBackend] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> StoryboardResult:
    """Blocking wrapper around generate_storyboard for scripts."""
    return asyncio.run(generate_storyboard(request_data, text_backend, image_backend, on_progress))
