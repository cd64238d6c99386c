"""
Script generation stage - turns an idea (or a supplied script) into a script and image prompts.
"""

import csv
import io
from typing import List, Optional, Tuple

import requests

from .base import StageService
from ..config import WorkflowConfig
from ..models import IdeaSourceMode, ScriptRequest, ScriptResult
from ..utils.text import estimate_duration, image_prompt_count


SCRIPT_TEMPLATE = """Welcome to this video about {idea}!

In today's fast-moving world, {idea} have become more important than ever. Over the next few minutes we will look at where they came from, why they matter, and how you can start using them yourself.

First, let's understand what makes {idea} so special. They combine fresh ideas with everyday practicality, and that mix creates solutions that genuinely change the way people work, learn, and spend their time.

Many people wonder how to get started with {idea}. The key is to begin with small, manageable steps. Pick one clear goal, try it out for a week, and keep notes on what works and what does not.

The benefits are easy to see once you begin. From saving time and money to opening brand new opportunities, the possibilities keep growing as you learn more.

Of course, there are challenges too. Costs, learning curves, and common myths can slow people down, so it pays to research carefully and ask questions early.

Looking ahead, {idea} will continue to evolve and shape how we live, work, and connect with one another daily.

Thank you for watching! If you found this helpful, like, subscribe, and share it with a friend who might enjoy it."""

# One prompt per section of SCRIPT_TEMPLATE
SECTION_PROMPTS: Tuple[str, ...] = (
    "Professional introduction background with {idea} theme, modern design",
    "Infographic showing {idea} concepts, clean and colorful",
    "Digital illustration of {idea} in action, futuristic style",
    "Step-by-step guide visualization for {idea}, minimalist",
    "Benefits chart of {idea}, professional presentation",
    "Future vision of {idea}, inspiring and innovative",
    "Call to action screen with subscribe button, engaging design",
)

SCENE_PROMPT = "Scene {n} visualization for video about {idea}, professional and engaging"


class SheetsIdeaSource:
    """
    Reads video ideas from a Google Sheet.

    The sheet must be shared for viewing; its CSV export is downloaded
    and the first idea in the first column is used.
    """

    EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv"
    HEADER_NAMES = {"idea", "ideas", "topic", "title"}

    def __init__(self, timeout_sec: float = 30.0):
        self.timeout_sec = timeout_sec

    def fetch_idea(self, sheet_id: str) -> str:
        """
        Fetch the first idea from a sheet.

        Raises:
            RuntimeError: If the sheet cannot be downloaded or holds no ideas
        """
        url = self.EXPORT_URL.format(sheet_id=sheet_id)
        resp = requests.get(url, timeout=self.timeout_sec)
        if resp.status_code != 200:
            raise RuntimeError(f"Google Sheets fetch failed ({resp.status_code}) for sheet {sheet_id}")

        ideas = self.parse_ideas(resp.text)
        if not ideas:
            raise RuntimeError(f"Google Sheet {sheet_id} contains no ideas")
        return ideas[0]

    def parse_ideas(self, csv_text: str) -> List[str]:
        """Return first-column cells, skipping a header row and blanks."""
        ideas = []
        for row_idx, row in enumerate(csv.reader(io.StringIO(csv_text))):
            if not row:
                continue
            cell = row[0].strip()
            if row_idx == 0 and cell.lower() in self.HEADER_NAMES:
                continue
            if cell:
                ideas.append(cell)
        return ideas


class ScriptService(StageService[ScriptRequest, ScriptResult]):
    """
    Produces the narration script and one image prompt per scene.

    Input: ScriptRequest (idea or custom script, and the sourcing mode)
    Output: ScriptResult with script, image prompts and estimated duration

    A supplied script is used as-is: its duration comes from the word
    count and the prompt count from the duration. Otherwise a script is
    generated from the idea with one prompt per script section.
    """

    name = "script"
    title = "Script Generator"
    description = "Fetch ideas and generate the video script"
    active_message = "Fetching ideas and generating script..."

    def __init__(self, config: WorkflowConfig, idea_source: Optional[SheetsIdeaSource] = None):
        super().__init__(config)
        self.idea_source = idea_source or SheetsIdeaSource(timeout_sec=config.sheets_timeout_sec)

    def run(self, request: ScriptRequest) -> ScriptResult:
        idea = self._resolve_idea(request)

        if request.custom_script:
            script = request.custom_script
            duration = estimate_duration(script, self.config.words_per_minute)
            prompts = self._scene_prompts(idea, duration)
        else:
            if not idea:
                raise RuntimeError("No idea available to generate a script from")
            script, duration, prompts = self._generate_script(idea)

        print(f"Script ready: {duration}s estimated, {len(prompts)} image prompts")
        return ScriptResult(
            script=script,
            image_prompts=tuple(prompts),
            estimated_duration_seconds=duration,
            idea=idea,
        )

    def _resolve_idea(self, request: ScriptRequest) -> Optional[str]:
        if request.mode == IdeaSourceMode.GOOGLE_SHEETS:
            if not request.sheets_id:
                raise RuntimeError("Google Sheets mode requires a sheet id")
            print(f"Fetching idea from Google Sheet {request.sheets_id}...")
            return self.idea_source.fetch_idea(request.sheets_id)
        return request.idea or self.config.default_idea

    def _generate_script(self, idea: str) -> Tuple[str, int, List[str]]:
        script = SCRIPT_TEMPLATE.format(idea=idea)
        duration = estimate_duration(script, self.config.words_per_minute)
        prompts = [template.format(idea=idea) for template in SECTION_PROMPTS]
        return script, duration, prompts

    def _scene_prompts(self, idea: Optional[str], duration: int) -> List[str]:
        count = image_prompt_count(
            duration,
            minimum=self.config.min_image_prompts,
            seconds_per_image=self.config.seconds_per_image,
        )
        topic = idea or "this topic"
        return [SCENE_PROMPT.format(n=n, idea=topic) for n in range(1, count + 1)]

    def completed_message(self, output: ScriptResult) -> str:
        return f"Script generated ({output.estimated_duration_seconds}s estimated)"

    def summarize(self, output: ScriptResult) -> List[str]:
        return [
            f"Generated script: {output.script[:100]}...",
            f"Generated {len(output.image_prompts)} image prompts",
        ]
