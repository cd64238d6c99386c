"""
Publishing stage - metadata, thumbnail and the upload reference.
"""

import uuid
from datetime import datetime
from typing import List, Optional, Set

from .asset_creator import encode_png, render_gradient_card, to_data_url
from .base import StageService
from ..config import WorkflowConfig
from ..models import PublishRequest, PublishResult, PublishStatus
from ..core.run import utc_now
from ..utils.text import KeywordExtractor

FALLBACK_TITLE = "Amazing AI Generated Video"
MAX_TITLE_LENGTH = 100

DESCRIPTION_FOOTER = """

Subscribe for more content like this!
Like this video if you found it helpful!
Comment below with your thoughts!
Share it with your friends!

#AI #Automation #Technology #Tutorial #HowTo

Created with an automated video workflow."""


def build_title(script: str) -> str:
    """Use the script's first line as the title."""
    first_line = script.strip().split("\n")[0].strip()
    if len(first_line) <= 10:
        return FALLBACK_TITLE
    if len(first_line) > MAX_TITLE_LENGTH:
        return first_line[:MAX_TITLE_LENGTH - 3] + "..."
    return first_line


def build_description(script: str) -> str:
    body = script.strip()
    if len(body) > 500:
        body = body[:500] + "..."
    return body + DESCRIPTION_FOOTER


class PublishService(StageService[PublishRequest, PublishResult]):
    """
    Publishes the finished video.

    Input: PublishRequest (video, script, optional schedule time)
    Output: PublishResult with URL, metadata, thumbnail and status

    The status is "scheduled" only when a schedule time lies after the
    request time (the run's creation time), otherwise "published".
    """

    name = "publish"
    title = "YouTube Publisher"
    description = "Upload and schedule the video"
    active_message = "Uploading to YouTube..."

    WATCH_URL = "https://youtube.com/watch?v={video_id}"

    def __init__(self, config: WorkflowConfig):
        super().__init__(config)
        self.keyword_extractor = KeywordExtractor(max_keywords=config.max_extracted_keywords)

    def run(self, request: PublishRequest) -> PublishResult:
        title = build_title(request.script)
        description = build_description(request.script)
        keywords = self._build_keywords(request.script, request.idea)
        thumbnail_ref = self._create_thumbnail(title)

        published_url = self._upload(request.video_ref)
        status = self._status(request.scheduled_time, request.requested_at)
        if status == PublishStatus.SCHEDULED:
            print(f"Scheduled for {request.scheduled_time.isoformat()}")

        return PublishResult(
            published_url=published_url,
            title=title,
            description=description,
            keywords=frozenset(keywords),
            thumbnail_ref=thumbnail_ref,
            status=status,
            scheduled_time=request.scheduled_time if status == PublishStatus.SCHEDULED else None,
        )

    def _build_keywords(self, script: str, idea: Optional[str]) -> Set[str]:
        keywords = set(self.config.base_keywords)
        if idea:
            keywords.add(idea.lower())
        keywords.update(self.keyword_extractor.extract_keywords(script))
        return keywords

    def _create_thumbnail(self, title: str) -> str:
        img = render_gradient_card(
            self.config.thumbnail_size,
            (0x66, 0x7E, 0xEA),
            (0x76, 0x4B, 0xA2),
            [title[:30], "AI AUTOMATED", self.config.channel_name],
        )
        if not self.config.write_assets:
            return to_data_url(encode_png(img), "image/png")

        thumbnails_dir = self.config.thumbnails_dir
        thumbnails_dir.mkdir(parents=True, exist_ok=True)
        thumb_path = thumbnails_dir / f"{uuid.uuid4().hex[:8]}.png"
        img.save(thumb_path, format="PNG")
        return str(thumb_path)

    def _upload(self, video_ref: str) -> str:
        video_id = "demo_" + uuid.uuid4().hex[:7]
        print(f"Uploading {video_ref}...")
        return self.WATCH_URL.format(video_id=video_id)

    @staticmethod
    def _status(scheduled_time: Optional[datetime], requested_at: Optional[datetime]) -> PublishStatus:
        if scheduled_time is None:
            return PublishStatus.PUBLISHED
        reference = requested_at or utc_now()
        if scheduled_time > reference:
            return PublishStatus.SCHEDULED
        return PublishStatus.PUBLISHED

    def completed_message(self, output: PublishResult) -> str:
        if output.status == PublishStatus.SCHEDULED:
            return f"Scheduled on YouTube for {output.scheduled_time.isoformat()}"
        return "Published to YouTube successfully!"

    def summarize(self, output: PublishResult) -> List[str]:
        return [
            f"Video uploaded to YouTube: {output.published_url}",
            f"Title: {output.title}",
        ]
