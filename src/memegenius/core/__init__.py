"""Core primitives for memegenius."""

from memegenius.core.config import GLOBAL_CONFIG_PATH, GlobalConfig, load_global_config
from memegenius.core.history import EditHistory, EditRecord
from memegenius.core.interfaces import ImageEditor
from memegenius.core.payload import ImagePayload
from memegenius.core.session import EditingSession, SessionStatus

__all__ = [
    "GLOBAL_CONFIG_PATH",
    "EditHistory",
    "EditRecord",
    "EditingSession",
    "GlobalConfig",
    "ImageEditor",
    "ImagePayload",
    "SessionStatus",
    "load_global_config",
]
