"""Ingestion orchestration and progress fan-out."""

from grantdesk.pipeline.ingestion_pipeline import GrantIdGenerator, IngestionPipeline
from grantdesk.pipeline.progress_tracker import ProgressTracker

__all__ = [
    "GrantIdGenerator",
    "IngestionPipeline",
    "ProgressTracker",
]
