"""
Utilities for the Storyboard Studio pipeline

This module provides file I/O utilities for:
- Exporting a storyboard result as JSON
- Saving generated panel images with systematic naming
- Creating a panel collage
"""

import base64
import binascii
import io
import json
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import requests
from PIL import Image, ImageDraw, ImageFont

from .artifact import SceneRequest, StoryboardResult, SynthesizedPanel, SynthesisOutcome

TILE_SIZE = (512, 384)
COLLAGE_COLUMNS = 3


def sanitize_name(name: str) -> str:
    sanitized = re.sub(r'[^\w\-_]', '_', name)
    sanitized = re.sub(r'_+', '_', sanitized)
    sanitized = sanitized.strip('_')
    return sanitized.lower()


def _project_dir(project_name: str) -> str:
    path = os.path.join("data", sanitize_name(project_name))
    os.makedirs(path, exist_ok=True)
    return path


def save_storyboard_json(result: StoryboardResult, project_name: str, request: Optional[SceneRequest] = None) -> str:
    """Write the storyboard (camelCase keys) to data/{project_name}/storyboard.json.

    Args:
        result: The generated storyboard
        project_name: Name of the project (e.g., 'desert_chase')
        request: Optional request echoed into the export

    Returns:
        Path to the written JSON file
    """
    export = {
        "name": project_name,
        "createdAt": datetime.now().isoformat(),
        **result.model_dump(mode="json", by_alias=True),
    }
    if request is not None:
        export["request"] = request.model_dump(mode="json", by_alias=True)

    export_path = os.path.join(_project_dir(project_name), "storyboard.json")
    with open(export_path, "w", encoding="utf-8") as f:
        json.dump(export, f, indent=2, ensure_ascii=False)

    print(f"Storyboard saved: {export_path}")
    return export_path


def decode_image_ref(image_ref: str) -> Optional[bytes]:
    """Decode an inline data:image/... reference. Remote URLs return None.

    Raises:
        ValueError: If the data URI payload is not valid base64
    """
    if not image_ref or not image_ref.startswith("data:image/"):
        return None
    try:
        base64_data = image_ref.split(',', 1)[1]
        return base64.b64decode(base64_data, validate=True)
    except (IndexError, binascii.Error) as e:
        raise ValueError(f"Failed to decode base64 image data: {str(e)}")


def save_panel_images(result: StoryboardResult, project_name: str) -> Dict[int, str]:
    """Save every inline panel image to data/{project_name}/images/.

    Placeholder panels are skipped.

    Returns:
        Mapping of panel number to the saved file path
    """
    images_dir = os.path.join(_project_dir(project_name), "images")
    os.makedirs(images_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    saved = {}
    for panel in result.panels:
        if panel.synthesis_outcome != SynthesisOutcome.SUCCESS:
            continue
        try:
            image_bytes = decode_image_ref(panel.image_ref)
        except ValueError as e:
            print(f"  ⚠️  Skipping image for panel {panel.panel_number}: {str(e)[:100]}")
            continue
        if image_bytes is None:
            continue

        filepath = os.path.join(images_dir, f"panel_{panel.panel_number}_{timestamp}.png")
        with open(filepath, "wb") as f:
            f.write(image_bytes)
        saved[panel.panel_number] = filepath

    return saved


def _load_font(size: int):
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default()


def _placeholder_tile(panel: SynthesizedPanel) -> Image.Image:
    tile = Image.new('RGB', TILE_SIZE, color='#cccccc')
    draw = ImageDraw.Draw(tile)
    label = f"Panel {panel.panel_number}: {panel.synthesis_outcome.value}"
    draw.text((20, TILE_SIZE[1] // 2 - 10), label, fill='#444444', font=_load_font(24))
    return tile


def _panel_tile(panel: SynthesizedPanel, fetch_remote: bool) -> Image.Image:
    try:
        image_bytes = decode_image_ref(panel.image_ref)
    except ValueError as e:
        print(f"  ⚠️  Bad image data for panel {panel.panel_number}: {str(e)[:100]}")
        return _placeholder_tile(panel)

    if image_bytes is None and fetch_remote and panel.image_ref.startswith(("http://", "https://")):
        try:
            response = requests.get(panel.image_ref, timeout=30)
            response.raise_for_status()
            image_bytes = response.content
        except requests.exceptions.RequestException as e:
            print(f"  ⚠️  Could not fetch image for panel {panel.panel_number}: {str(e)[:100]}")

    if image_bytes is None:
        return _placeholder_tile(panel)

    try:
        img = Image.open(io.BytesIO(image_bytes)).convert('RGB')
    except OSError as e:
        print(f"  ⚠️  Could not read image for panel {panel.panel_number}: {str(e)[:100]}")
        return _placeholder_tile(panel)
    img.thumbnail(TILE_SIZE)
    tile = Image.new('RGB', TILE_SIZE, color='white')
    tile.paste(img, ((TILE_SIZE[0] - img.width) // 2, (TILE_SIZE[1] - img.height) // 2))
    return tile


def _wrap_text(draw: ImageDraw.ImageDraw, text: str, font, max_width: int):
    lines = []
    current_line = []
    for word in text.split():
        test_line = ' '.join(current_line + [word])
        bbox = draw.textbbox((0, 0), test_line, font=font)
        if bbox[2] - bbox[0] > max_width and current_line:
            lines.append(' '.join(current_line))
            current_line = [word]
        else:
            current_line.append(word)
    if current_line:
        lines.append(' '.join(current_line))
    return lines


def create_storyboard_collage(
    result: StoryboardResult,
    project_name: str,
    output_filename: Optional[str] = None,
    fetch_remote: bool = False,
) -> str:
    """Create a grid collage of all panels with captions.

    Args:
        result: The generated storyboard
        project_name: Name of the project; the collage goes to data/{project_name}/
        output_filename: Optional custom filename (defaults to "storyboard_collage_{timestamp}.png")
        fetch_remote: If True, download remote (placeholder) images with requests
                      instead of drawing a grey tile

    Returns:
        Path to the saved collage image

    Raises:
        ValueError: If the storyboard has no panels
    """
    if not result.panels:
        raise ValueError("No panels found in storyboard")

    print(f"📸 Creating collage for {len(result.panels)} panels...")

    caption_height = 120
    padding = 20
    tile_w, tile_h = TILE_SIZE
    columns = min(COLLAGE_COLUMNS, len(result.panels))
    rows = (len(result.panels) + columns - 1) // columns

    collage_width = columns * tile_w + (columns + 1) * padding
    collage_height = rows * (tile_h + caption_height) + (rows + 1) * padding
    collage = Image.new('RGB', (collage_width, collage_height), color='white')
    draw = ImageDraw.Draw(collage)

    title_font = _load_font(22)
    desc_font = _load_font(16)

    for idx, panel in enumerate(result.panels):
        row, col = divmod(idx, columns)
        x = padding + col * (tile_w + padding)
        y = padding + row * (tile_h + caption_height + padding)

        collage.paste(_panel_tile(panel, fetch_remote), (x, y))

        text_y = y + tile_h + 8
        draw.text((x, text_y), f"Panel {panel.panel_number}: {panel.shot_details}", fill='black', font=title_font)
        text_y += 30

        caption = panel.dialogue_or_sound or panel.description
        for line in _wrap_text(draw, caption, desc_font, tile_w)[:4]:
            draw.text((x, text_y), line, fill='#666666', font=desc_font)
            text_y += 20

    output_dir = Path(_project_dir(project_name))
    if output_filename is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_filename = f"storyboard_collage_{timestamp}.png"

    output_path = output_dir / output_filename
    collage.save(output_path)

    print(f"✅ Collage saved: {output_path}")
    return str(output_path)
