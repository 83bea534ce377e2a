"""
Body transformations used by the migration pipeline.

Exposes the markup normalize pass and the inline image rewrite from
:mod:`article_migrator.parsers.html_rewriter` and the video embed
translation from :mod:`article_migrator.parsers.video_embed`.
"""

from .html_rewriter import normalize_markup, rewrite_images
from .video_embed import append_video, video_to_iframe

__all__ = ["normalize_markup", "rewrite_images", "append_video", "video_to_iframe"]
