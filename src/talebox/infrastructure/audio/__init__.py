"""Audio output implementations."""

from talebox.infrastructure.audio.virtual_output import VirtualAudioOutput

__all__ = ["VirtualAudioOutput"]
