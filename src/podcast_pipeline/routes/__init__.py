from podcast_pipeline.routes.runs import router as runs_router

__all__ = ["runs_router"]
