from podcast_pipeline.handlers.run_message_handler import RunMessageHandler

__all__ = ["RunMessageHandler"]
