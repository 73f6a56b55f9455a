"""
Workflows module - Pipeline orchestration for the personalized civic feed.
"""
from workflows.base import FeedPipeline
from workflows.personalized_feed import PersonalizedFeedPipeline
from workflows.pipeline_factory import create_feed_pipeline

__all__ = [
    "FeedPipeline",
    "PersonalizedFeedPipeline",
    "create_feed_pipeline",
]
