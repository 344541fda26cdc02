"""
Tests for per-panel image synthesis.
"""

import asyncio
from types import SimpleNamespace

import pytest

from storyboard_studio import (
    IMAGE_TIMEOUT_SECONDS,
    SAFETY_SETTINGS,
    PanelPlan,
    SynthesisOutcome,
    build_image_prompt,
    placeholder_image_ref,
    synthesize_panel,
)
from storyboard_studio.synthesizer import ImageResponse, Media

from conftest import FakeImageBackend


@pytest.fixture
def plan():
    return PanelPlan(panel_number=2, description="A cat leaps across rooftops", shot_details="Tracking shot", dialogue_or_sound="Meow!")


class TestBuildImagePrompt:

    def test_without_style(self, plan):
        prompt = build_image_prompt(plan)

        assert prompt.startswith("Generate a storyboard panel image. Scene: A cat leaps across rooftops. Shot: Tracking shot.")
        assert "Style:" not in prompt
        assert "clear visual storytelling" in prompt

    def test_with_style(self, plan):
        assert " Style: Whimsical Fantasy." in build_image_prompt(plan, "Whimsical Fantasy")


class TestPlaceholders:

    def test_no_media_placeholder(self):
        assert placeholder_image_ref(SynthesisOutcome.NO_MEDIA, 7) == "https://placehold.co/512x384.png?text=Image+Gen+Failed+P7"

    def test_error_placeholder(self):
        assert placeholder_image_ref(SynthesisOutcome.ERROR, 1) == "https://placehold.co/512x384.png?text=Image+Error+P1"

    def test_safety_settings_cover_four_categories(self):
        categories = {setting["category"] for setting in SAFETY_SETTINGS}

        assert categories == {
            "HARM_CATEGORY_HATE_SPEECH",
            "HARM_CATEGORY_DANGEROUS_CONTENT",
            "HARM_CATEGORY_HARASSMENT",
            "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        }
        assert all(setting["threshold"] == "BLOCK_ONLY_HIGH" for setting in SAFETY_SETTINGS)


class TestSynthesizePanel:

    @pytest.mark.asyncio
    async def test_success(self, plan):
        backend = FakeImageBackend(lambda desc: ImageResponse(media=Media(url="data:image/png;base64,abc")))

        panel = await synthesize_panel(plan, image_backend=backend)

        assert panel.synthesis_outcome == SynthesisOutcome.SUCCESS
        assert panel.image_ref == "data:image/png;base64,abc"
        assert panel.alt == plan.description

    @pytest.mark.asyncio
    async def test_passes_safety_settings_and_timeout(self, plan, image_backend):
        await synthesize_panel(plan, "Anime Action", image_backend=image_backend)

        call = image_backend.calls[0]
        assert call["safety_settings"] == SAFETY_SETTINGS
        assert call["timeout"] == IMAGE_TIMEOUT_SECONDS == 30
        assert "Style: Anime Action." in call["prompt"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        {"media": None},
        {"media": {"url": ""}},
        {},
        None,
        ImageResponse(media=None),
    ])
    async def test_no_media(self, plan, response, capsys):
        backend = FakeImageBackend(lambda desc: response)

        panel = await synthesize_panel(plan, image_backend=backend)

        assert panel.synthesis_outcome == SynthesisOutcome.NO_MEDIA
        assert panel.image_ref == "https://placehold.co/512x384.png?text=Image+Gen+Failed+P2"
        assert panel.alt == "A cat leaps across rooftops"
        assert "panel 2" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_backend_exception(self, plan, capsys):
        def explode(desc):
            raise RuntimeError("Simulated image generation error")

        panel = await synthesize_panel(plan, image_backend=FakeImageBackend(explode))

        assert panel.synthesis_outcome == SynthesisOutcome.ERROR
        assert panel.image_ref == "https://placehold.co/512x384.png?text=Image+Error+P2"
        assert "Simulated image generation error" in capsys.readouterr().out

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        SimpleNamespace(media=SimpleNamespace(url=12345)),
        {"media": {"url": 12345}},
    ])
    async def test_non_string_url_is_an_error(self, plan, response):
        panel = await synthesize_panel(plan, image_backend=FakeImageBackend(lambda desc: response))

        assert panel.synthesis_outcome == SynthesisOutcome.ERROR
        assert panel.image_ref == "https://placehold.co/512x384.png?text=Image+Error+P2"
        assert panel.alt == plan.description

    @pytest.mark.asyncio
    async def test_timeout_is_an_error(self, plan):
        backend = FakeImageBackend(delays={plan.description: 5})

        panel = await synthesize_panel(plan, image_backend=backend, timeout=0.05)

        assert panel.synthesis_outcome == SynthesisOutcome.ERROR
        assert "Image+Error+P2" in panel.image_ref
        assert backend.completed == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        {"media": {"url": "data:image/png;base64,xyz"}},
        None,
        RuntimeError("boom"),
    ])
    async def test_plan_fields_preserved(self, plan, response):
        def handler(desc):
            if isinstance(response, Exception):
                raise response
            return response

        panel = await synthesize_panel(plan, image_backend=FakeImageBackend(handler))

        assert panel.panel_number == plan.panel_number
        assert panel.description == plan.description
        assert panel.shot_details == plan.shot_details
        assert panel.dialogue_or_sound == plan.dialogue_or_sound
        assert panel.alt == plan.description

    @pytest.mark.asyncio
    async def test_cancellation_is_not_absorbed(self, plan):
        backend = FakeImageBackend(delays={plan.description: 5})
        task = asyncio.ensure_future(synthesize_panel(plan, image_backend=backend))
        await asyncio.sleep(0.01)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
