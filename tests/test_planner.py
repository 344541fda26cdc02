"""
Tests for panel planning.
"""

import pytest

from storyboard_studio import (
    PLANNING_FAILED_MESSAGE,
    PanelPlanList,
    PlanningError,
    SceneRequest,
    build_planning_prompt,
    plan_storyboard,
)

from conftest import SCENE, FakeTextBackend, make_plan_output


class TestBuildPlanningPrompt:

    def test_includes_scene_and_count(self):
        prompt = build_planning_prompt(SceneRequest(scene_description=SCENE, num_panels=4))

        assert SCENE in prompt
        assert "Number of Panels to Generate: 4" in prompt
        assert "Visual Style Preset" not in prompt

    def test_includes_style_when_present(self):
        prompt = build_planning_prompt(SceneRequest(scene_description=SCENE, style_preset="Cinematic Noir"))

        assert 'Visual Style Preset: "Cinematic Noir"' in prompt


class TestPlanStoryboard:

    @pytest.mark.asyncio
    async def test_returns_panels_in_backend_order(self, scene_request):
        output = make_plan_output([
            {"panelNumber": 2, "description": "Second", "shotDetails": "Wide"},
            {"panelNumber": 1, "description": "First", "shotDetails": "Close"},
        ])
        backend = FakeTextBackend(output)

        plan = await plan_storyboard(scene_request, text_backend=backend)

        assert [p.panel_number for p in plan.panels] == [2, 1]
        assert plan.title_suggestion == "Test Title"

    @pytest.mark.asyncio
    async def test_single_call_with_plan_schema(self, scene_request, two_panels):
        backend = FakeTextBackend(make_plan_output(two_panels))

        await plan_storyboard(scene_request, text_backend=backend)

        assert len(backend.calls) == 1
        prompt, response_format = backend.calls[0]
        assert response_format is PanelPlanList
        assert SCENE in prompt

    @pytest.mark.asyncio
    async def test_accepts_raw_mapping(self, scene_request, two_panels):
        backend = FakeTextBackend({"panels": two_panels})

        plan = await plan_storyboard(scene_request, text_backend=backend)

        assert len(plan.panels) == 2
        assert plan.title_suggestion is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("output", [
        None,
        {"panels": []},
        {"titleSuggestion": "No panels here"},
        "not json at all",
        {"panels": [{"panelNumber": 1}]},
    ])
    async def test_unusable_output_raises_planning_error(self, scene_request, output):
        backend = FakeTextBackend(output)

        with pytest.raises(PlanningError) as exc_info:
            await plan_storyboard(scene_request, text_backend=backend)

        assert str(exc_info.value) == PLANNING_FAILED_MESSAGE
        assert len(backend.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_model_raises_planning_error(self, scene_request):
        backend = FakeTextBackend(PanelPlanList(panels=[]))

        with pytest.raises(PlanningError, match="Failed to generate textual descriptions for storyboard panels."):
            await plan_storyboard(scene_request, text_backend=backend)

    @pytest.mark.asyncio
    async def test_extra_keys_in_panels_are_dropped(self, scene_request):
        backend = FakeTextBackend({
            "panels": [
                {"panelNumber": 1, "description": "First", "shotDetails": "Wide", "cameraMove": "pan"},
                {"panelNumber": 2, "description": "Second", "shotDetails": "Close"},
            ],
            "titleSuggestion": "Extra Keys",
            "mood": "tense",
        })

        plan = await plan_storyboard(scene_request, text_backend=backend)

        assert [p.panel_number for p in plan.panels] == [1, 2]
        assert "cameraMove" not in plan.panels[0].model_dump(by_alias=True)
        assert plan.title_suggestion == "Extra Keys"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        ConnectionError("network down"),
        ValueError("OPENROUTER_API_KEY environment variable not found"),
    ])
    async def test_backend_failure_raises_planning_error(self, scene_request, error):
        backend = FakeTextBackend(error)

        with pytest.raises(PlanningError) as exc_info:
            await plan_storyboard(scene_request, text_backend=backend)

        assert str(exc_info.value) == PLANNING_FAILED_MESSAGE
        assert exc_info.value.__cause__ is error
        assert exc_info.value.details["cause"] == str(error)
