from podcast_pipeline.repositories.run_repository import SqlRunRepository

__all__ = ["SqlRunRepository"]
