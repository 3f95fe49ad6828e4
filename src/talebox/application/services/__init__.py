"""Application services."""

from talebox.application.services.audio_url_service import AudioUrlResolver
from talebox.application.services.current_user import CurrentUserProvider
from talebox.application.services.library_service import LibraryService
from talebox.application.services.network_detection import (
    detect_mobile_device,
    get_network_info,
    is_slow_network,
)
from talebox.application.services.notification_service import NotificationService
from talebox.application.services.playback_session import (
    GlobalPlaybackSession,
    PlaybackSnapshot,
)
from talebox.application.services.player_screens import PlayerScreens
from talebox.application.services.progress_service import ProgressService
from talebox.application.services.secure_audio_session import (
    SecureAudioSession,
    SecureAudioSnapshot,
)

__all__ = [
    "AudioUrlResolver",
    "CurrentUserProvider",
    "GlobalPlaybackSession",
    "LibraryService",
    "NotificationService",
    "PlaybackSnapshot",
    "PlayerScreens",
    "ProgressService",
    "SecureAudioSession",
    "SecureAudioSnapshot",
    "detect_mobile_device",
    "get_network_info",
    "is_slow_network",
]
