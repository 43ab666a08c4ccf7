"""Audio streaming between the microphone, the speaker and a TCP connection."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

import pygame

from lanintercom.net import TcpConnection

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
CHUNK_SIZE = 1024
SAMPLE_WIDTH = 2  # bytes per mono signed 16-bit sample


class CallbackResult(Enum):
    """What an audio stream should do after a callback has run."""

    CONTINUE = "continue"
    COMPLETE = "complete"


def record_callback(connection: TcpConnection, data: bytes | None) -> CallbackResult:
    """Send one captured block of samples to the peer.

    A full socket is not an error: the block is dropped and recording goes on.
    Any other socket failure ends the recording.
    """
    if data is None:
        return CallbackResult.CONTINUE
    try:
        connection.write(data)
    except BlockingIOError:
        return CallbackResult.CONTINUE
    except OSError as exc:
        logger.error("Error writing to socket: %s", exc.strerror or exc)
        return CallbackResult.COMPLETE
    return CallbackResult.CONTINUE


def play_callback(connection: TcpConnection, frames: int) -> tuple[bytes, CallbackResult]:
    """Fetch up to ``frames`` samples from the peer for playback.

    Returns exactly ``frames`` samples, padded with silence, and whether the
    playback stream should go on. When the peer has closed the connection the
    block is silent and playback completes.
    """
    size = frames * SAMPLE_WIDTH
    chunk = connection.read_once(size)
    if chunk is None:
        return bytes(size), CallbackResult.CONTINUE
    if not chunk:
        return bytes(size), CallbackResult.COMPLETE
    return chunk.ljust(size, b"\0"), CallbackResult.CONTINUE


class IntercomAudio:
    """A capture stream and a playback stream wired to one connection.

    Both streams start paused. The devices only need ``pause(flag)`` and
    ``close()``.
    """

    def __init__(self, connection: TcpConnection, recording_device=None, playback_device=None) -> None:
        self._connection = connection
        self._recording_device = recording_device
        self._playback_device = playback_device
        self._recording_live = False
        self._playback_live = False

    @classmethod
    def create(cls, connection: TcpConnection) -> IntercomAudio:
        """Open the default capture and playback devices (mono, 16-bit, 44.1 kHz).

        Raises ``RuntimeError`` if either device cannot be opened.
        """
        from pygame._sdl2 import audio as sdl_audio

        audio = cls(connection)
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
            audio._recording_device = _open_device(sdl_audio, True, audio._on_record)
            audio._playback_device = _open_device(sdl_audio, False, audio._on_play)
        except pygame.error as exc:
            audio.close()
            raise RuntimeError(f"Error opening audio stream: {exc}") from exc
        except RuntimeError:
            audio.close()
            raise
        return audio

    def _on_record(self, _device, stream) -> None:
        if not self._recording_live:
            return
        if record_callback(self._connection, bytes(stream)) is CallbackResult.COMPLETE:
            self._recording_live = False

    def _on_play(self, _device, stream) -> None:
        target = memoryview(stream).cast("B")
        if not self._playback_live:
            target[:] = bytes(len(target))
            return
        data, result = play_callback(self._connection, len(target) // SAMPLE_WIDTH)
        target[: len(data)] = data
        target[len(data):] = bytes(len(target) - len(data))
        if result is CallbackResult.COMPLETE:
            self._playback_live = False

    @staticmethod
    def _pause(device, paused: bool, action: str) -> None:
        if device is None:
            logger.error("Error %s stream: stream is closed", action)
            return
        try:
            device.pause(int(paused))
        except pygame.error as exc:
            logger.error("Error %s stream: %s", action, exc)

    def start_recording(self) -> None:
        self._recording_live = True
        self._pause(self._recording_device, False, "starting recording")

    def stop_recording(self) -> None:
        self._recording_live = False
        self._pause(self._recording_device, True, "stopping recording")

    def start_playback(self) -> None:
        self._playback_live = True
        self._pause(self._playback_device, False, "starting playback")

    def stop_playback(self) -> None:
        self._playback_live = False
        self._pause(self._playback_device, True, "stopping playback")

    def close(self) -> None:
        """Stop and release both devices; safe to call more than once."""
        self._recording_live = False
        self._playback_live = False
        for device in (self._recording_device, self._playback_device):
            if device is None:
                continue
            try:
                device.pause(1)
            except pygame.error:
                pass
            device.close()
        self._recording_device = None
        self._playback_device = None

    def __enter__(self) -> IntercomAudio:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def _open_device(sdl_audio, capture: bool, callback: Callable):
    names = sdl_audio.get_audio_device_names(capture)
    if not names:
        kind = "input" if capture else "output"
        raise RuntimeError(f"Error opening audio stream: no {kind} device available")
    return sdl_audio.AudioDevice(
        devicename=names[0],
        iscapture=capture,
        frequency=SAMPLE_RATE,
        audioformat=sdl_audio.AUDIO_S16,
        numchannels=1,
        chunksize=CHUNK_SIZE,
        allowed_changes=0,
        callback=callback,
    )