from .youtube_live_client import YouTubeLiveBroadcastClient, youtube_live_broadcast_client
from .youtube_schemas import LiveBroadcast, LiveBroadcastPayload

__all__ = [
    "LiveBroadcast",
    "LiveBroadcastPayload",
    "YouTubeLiveBroadcastClient",
    "youtube_live_broadcast_client",
]
