from .update_sink import UpdateSink

__all__ = ["UpdateSink"]
