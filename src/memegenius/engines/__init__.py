"""Engine implementations for memegenius."""

from memegenius.engines.nanobanana import NanoBananaImageEditor, NanoBananaModel

__all__ = ["NanoBananaImageEditor", "NanoBananaModel"]
