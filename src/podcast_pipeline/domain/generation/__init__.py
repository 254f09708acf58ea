"""Generation tasks run in parallel during the generation phase."""

from podcast_pipeline.domain.generation.base import GenerationTask
from podcast_pipeline.domain.generation.hashtags import HashtagsTask
from podcast_pipeline.domain.generation.key_moments import KeyMomentsTask
from podcast_pipeline.domain.generation.social_posts import SocialPostsTask
from podcast_pipeline.domain.generation.summary import SummaryTask
from podcast_pipeline.domain.generation.titles import TitlesTask
from podcast_pipeline.domain.generation.youtube_timestamps import YouTubeTimestampsTask
from podcast_pipeline.infrastructure.interfaces import LLMService


def build_generation_tasks(llm: LLMService) -> list[GenerationTask]:
    """Returns one instance of each of the six generation tasks."""
    return [
        KeyMomentsTask(llm),
        SummaryTask(llm),
        SocialPostsTask(llm),
        TitlesTask(llm),
        HashtagsTask(llm),
        YouTubeTimestampsTask(llm),
    ]


__all__ = [
    "GenerationTask",
    "HashtagsTask",
    "KeyMomentsTask",
    "SocialPostsTask",
    "SummaryTask",
    "TitlesTask",
    "YouTubeTimestampsTask",
    "build_generation_tasks",
]
