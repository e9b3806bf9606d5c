from videotube.models.user import User, WatchHistoryEntry
from videotube.models.video import Video

__all__ = ["User", "WatchHistoryEntry", "Video"]
