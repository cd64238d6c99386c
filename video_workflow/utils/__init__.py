"""
Text helpers for the video workflow.
"""

from .text import KeywordExtractor, estimate_duration, image_prompt_count, word_count

__all__ = ["KeywordExtractor", "estimate_duration", "image_prompt_count", "word_count"]
