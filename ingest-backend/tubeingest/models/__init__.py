from tubeingest.models.channel import Channel
from tubeingest.models.video import Video

__all__ = ["Channel", "Video"]
