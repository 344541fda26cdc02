#!/usr/bin/env python3
"""
Generate a storyboard from a scene description.

Usage:
    python generate_storyboard.py "A detective walks into a rain-soaked alley..." --panels 4
    python generate_storyboard.py "..." --style "Cinematic Noir" --name noir_alley --collage
"""

import argparse
import asyncio
import sys
from datetime import datetime
from dotenv import load_dotenv

from storyboard_studio import (
    StoryboardProgress,
    ProgressStatus,
    StoryboardError,
    validate_scene_request,
    generate_storyboard,
    storyboard_to_shot_list_string,
    save_storyboard_json,
    save_panel_images,
    create_storyboard_collage,
)

load_dotenv()


def print_progress(event: StoryboardProgress):
    if event.status == ProgressStatus.PROCESSING:
        print(f"  [{event.progress:5.1f}%] {event.message}")
    elif event.status == ProgressStatus.ERROR:
        print(f"  [error] {event.message}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Turn a scene description into storyboard panels.")
    parser.add_argument("scene", help="Scene description (at least 20 characters)")
    parser.add_argument("--panels", type=int, default=None, help="Number of panels, 2-10 (default 6)")
    parser.add_argument("--style", default=None, help="Optional visual style preset")
    parser.add_argument("--name", default=None, help="Project name for the data/ output folder")
    parser.add_argument("--collage", action="store_true", help="Also build a collage image of all panels")
    parser.add_argument("--fetch-placeholders", action="store_true", help="Download placeholder images into the collage")
    return parser.parse_args(argv)


async def main(argv=None):
    args = parse_args(argv)
    run_name = args.name or f"storyboard_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

    request_data = {"sceneDescription": args.scene, "stylePreset": args.style}
    if args.panels is not None:
        request_data["numPanels"] = args.panels

    try:
        request = validate_scene_request(request_data)
        result = await generate_storyboard(request, on_progress=print_progress)
    except StoryboardError as e:
        print(f"❌ {e}")
        return 1

    print("\n" + "=" * 60)
    print(storyboard_to_shot_list_string(result))

    save_storyboard_json(result, run_name, request=request)
    saved = save_panel_images(result, run_name)
    print(f"💾 Saved {len(saved)} panel images")

    if args.collage:
        create_storyboard_collage(result, run_name, fetch_remote=args.fetch_placeholders)

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
