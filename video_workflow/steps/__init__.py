"""
Stage services for the video workflow.
"""

from .base import StageService
from .script_writer import ScriptService, SheetsIdeaSource
from .asset_creator import AssetService
from .video_assembler import AssemblyService
from .publisher import PublishService
from .remote import RemoteStageService

__all__ = [
    "StageService",
    "ScriptService",
    "SheetsIdeaSource",
    "AssetService",
    "AssemblyService",
    "PublishService",
    "RemoteStageService",
]
