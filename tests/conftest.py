"""
Pytest Configuration and Fixtures

Fake text and image backends so the pipeline runs without network access.
"""

import asyncio
import re
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from storyboard_studio import PanelPlanList, SceneRequest

SCENE = "A detective walks into a rain-soaked alley and finds a glowing briefcase."

_SCENE_PATTERN = re.compile(r"Scene: (.*?)\. Shot:")


def panel_description(prompt: str) -> str:
    """Recover the panel description embedded in an image prompt."""
    match = _SCENE_PATTERN.search(prompt)
    return match.group(1) if match else ""


class FakeTextBackend:
    """Returns a fixed planning output and records every call."""

    def __init__(self, output: Any):
        self.output = output
        self.calls: List[tuple] = []

    async def __call__(self, prompt, response_format):
        self.calls.append((prompt, response_format))
        if isinstance(self.output, Exception):
            raise self.output
        return self.output


class FakeImageBackend:
    """Answers image requests through a handler keyed on the panel description.

    handler(description) may return a response, return None, or raise.
    delays maps a description to seconds to sleep before answering.
    """

    def __init__(self, handler: Optional[Callable[[str], Any]] = None, delays: Optional[Dict[str, float]] = None):
        self.handler = handler or (lambda desc: {"media": {"url": f"data:image/png;base64,image-for-{desc.replace(' ', '_')}"}})
        self.delays = delays or {}
        self.calls: List[Dict[str, Any]] = []
        self.completed: List[str] = []

    async def __call__(self, prompt, *, safety_settings, timeout):
        desc = panel_description(prompt)
        self.calls.append({"prompt": prompt, "safety_settings": safety_settings, "timeout": timeout})
        if desc in self.delays:
            await asyncio.sleep(self.delays[desc])
        response = self.handler(desc)
        self.completed.append(desc)
        return response


def make_plan_output(panels: List[Dict[str, Any]], title: Optional[str] = "Test Title") -> PanelPlanList:
    return PanelPlanList.model_validate({"panels": panels, "titleSuggestion": title})


@pytest.fixture
def scene_request() -> SceneRequest:
    return SceneRequest(scene_description=SCENE, num_panels=2)


@pytest.fixture
def request_data() -> Dict[str, Any]:
    return {"sceneDescription": SCENE, "numPanels": 2}


@pytest.fixture
def two_panels() -> List[Dict[str, Any]]:
    return [
        {"panelNumber": 1, "description": "Panel 1 desc", "shotDetails": "Shot 1"},
        {"panelNumber": 2, "description": "Panel 2 desc", "shotDetails": "Shot 2"},
    ]


@pytest.fixture
def image_backend() -> FakeImageBackend:
    return FakeImageBackend()


@pytest.fixture
def in_tmp_dir(tmp_path, monkeypatch) -> Path:
    """Run file-writing helpers inside a temporary working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
