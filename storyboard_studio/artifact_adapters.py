"""
Artifact Adapters - result assembly for StoryboardResult

This module handles:
- Assembling synthesized panels into the final, ordered result
- Outcome summaries and shot-list formatting for console output
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from .artifact import StoryboardResult, SynthesizedPanel, SynthesisOutcome


# ---------- Assembly ----------

def assemble_storyboard(panels: Iterable[SynthesizedPanel], title_suggestion: Optional[str] = None) -> StoryboardResult:
    """Build the final result, ordered by panel number.

    Sorting is numeric and stable: duplicate panel numbers keep their
    relative order from the input.

    Args:
        panels: Synthesized panels in any order
        title_suggestion: Title from planning, passed through unchanged

    Returns:
        StoryboardResult
    """
    ordered = sorted(panels, key=lambda panel: int(panel.panel_number))
    return StoryboardResult(panels=ordered, title_suggestion=title_suggestion)


# ---------- Summaries ----------

def summarize_outcomes(result: StoryboardResult) -> Dict[SynthesisOutcome, int]:
    """Count panels per synthesis outcome (every outcome is present)."""
    counts = {outcome: 0 for outcome in SynthesisOutcome}
    for panel in result.panels:
        counts[panel.synthesis_outcome] += 1
    return counts


def storyboard_to_shot_list_string(result: StoryboardResult) -> str:
    """Convert a result to a formatted string listing every panel.

    Args:
        result: StoryboardResult

    Returns:
        Formatted string with panel descriptions, shots, and dialogue
    """
    output_lines = []

    if result.title_suggestion:
        output_lines.append(f"TITLE: {result.title_suggestion}")
        output_lines.append("=" * 60)
        output_lines.append("")

    if not result.panels:
        output_lines.append("No panels in storyboard.")
        return "\n".join(output_lines)

    for panel in result.panels:
        output_lines.append(f"Panel {panel.panel_number}: {panel.shot_details}")
        output_lines.append(f"Description: {panel.description}")
        if panel.dialogue_or_sound:
            output_lines.append(f"Dialogue/Sound: {panel.dialogue_or_sound}")
        if panel.synthesis_outcome != SynthesisOutcome.SUCCESS:
            output_lines.append(f"Image: placeholder ({panel.synthesis_outcome.value})")
        output_lines.append("")

    return "\n".join(output_lines)
