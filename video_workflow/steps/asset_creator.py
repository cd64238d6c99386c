"""
Asset creation stage - voiceover reference and one placeholder image per prompt.
"""

import base64
import random
import uuid
from io import BytesIO
from pathlib import Path
from typing import List, Tuple

from PIL import Image, ImageDraw, ImageFont

from .base import StageService
from ..config import WorkflowConfig
from ..models import AssetBundle, AssetRequest

PALETTE: Tuple[Tuple[int, int, int], ...] = (
    (0x66, 0x7E, 0xEA),
    (0x76, 0x4B, 0xA2),
    (0xF0, 0x93, 0xFB),
    (0x4F, 0xAC, 0xFE),
    (0x43, 0xE9, 0x7B),
    (0xFA, 0x70, 0x9A),
)


def render_gradient_card(
    size: Tuple[int, int],
    start: Tuple[int, int, int],
    end: Tuple[int, int, int],
    lines: List[str],
) -> Image.Image:
    """Draw a vertical gradient with centred white text lines."""
    width, height = size
    img = Image.new("RGB", size, start)
    draw = ImageDraw.Draw(img)
    for y in range(height):
        t = y / max(height - 1, 1)
        color = tuple(int(a + (b - a) * t) for a, b in zip(start, end))
        draw.line([(0, y), (width, y)], fill=color)

    font = ImageFont.load_default()
    line_height = 14
    top = height // 2 - (len(lines) * line_height) // 2
    for i, line in enumerate(lines):
        text_w = draw.textlength(line, font=font)
        draw.text(((width - text_w) / 2, top + i * line_height), line, fill="white", font=font)
    return img


def encode_png(img: Image.Image) -> bytes:
    out = BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


def to_data_url(data: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


class AssetService(StageService[AssetRequest, AssetBundle]):
    """
    Creates the voiceover and the images for the video.

    Input: AssetRequest (script and image prompts)
    Output: AssetBundle with a voiceover reference and one image
            reference per prompt, in prompt order

    Images are gradient placeholders carrying the prompt text. With
    write_assets they are saved as images/<batch>/NNN.png, one batch
    directory per call; otherwise they are returned inline as data URLs.
    """

    name = "assets"
    title = "Content Creator"
    description = "Create the voiceover and images"
    active_message = "Creating voiceover and generating images..."

    def __init__(self, config: WorkflowConfig):
        super().__init__(config)

    def run(self, request: AssetRequest) -> AssetBundle:
        voiceover_ref = self._create_voiceover(request.script)

        batch_dir = self.config.images_dir / uuid.uuid4().hex[:8]
        image_refs = []
        for idx, prompt in enumerate(request.image_prompts):
            print(f"Generating image {idx+1}/{len(request.image_prompts)}...")
            image_refs.append(self._create_image(prompt, idx, batch_dir))

        print(f"Generated {len(image_refs)} images")
        return AssetBundle(voiceover_ref=voiceover_ref, image_refs=tuple(image_refs))

    def _create_voiceover(self, script: str) -> str:
        # Placeholder audio reference carrying the narration text
        return to_data_url(script.encode("utf-8"), "audio/wav")

    def _create_image(self, prompt: str, idx: int, batch_dir: Path) -> str:
        rng = random.Random(idx)
        start = PALETTE[idx % len(PALETTE)]
        end = tuple(rng.randint(0, 255) for _ in range(3))
        img = render_gradient_card(self.config.image_size, start, end, [prompt[:50]])

        if not self.config.write_assets:
            return to_data_url(encode_png(img), "image/png")

        batch_dir.mkdir(parents=True, exist_ok=True)
        img_path = batch_dir / f"{idx:03d}.png"
        img.save(img_path, format="PNG")
        return str(img_path)

    def completed_message(self, output: AssetBundle) -> str:
        return "Voiceover and images ready"

    def summarize(self, output: AssetBundle) -> List[str]:
        return [
            f"Voiceover created: {output.voiceover_ref[:60]}...",
            f"Generated {len(output.image_refs)} images",
        ]
