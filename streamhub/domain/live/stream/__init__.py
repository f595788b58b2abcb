from .stream_domain import StreamService

__all__ = ["StreamService"]
