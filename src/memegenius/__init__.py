"""MemeGenius: AI-powered meme image editing from the terminal."""

__version__ = "0.1.0"

from memegenius.core.history import EditHistory, EditRecord
from memegenius.core.interfaces import ImageEditor
from memegenius.core.payload import ImagePayload
from memegenius.core.session import EditingSession, SessionStatus
from memegenius.engines.nanobanana import NanoBananaImageEditor, NanoBananaModel

__all__ = [
    "EditHistory",
    "EditRecord",
    "EditingSession",
    "ImageEditor",
    "ImagePayload",
    "NanoBananaImageEditor",
    "NanoBananaModel",
    "SessionStatus",
]
