"""Command-line intercom: find a peer on the LAN, connect, and talk push-to-talk style."""

from __future__ import annotations

import argparse
import os
import sys
import time

import pygame

from lanintercom.audio import IntercomAudio
from lanintercom.net import TcpConnection, TcpConnectionListener, UdpSocket

BROADCAST_PORT = 55430
TCP_PORT = 6879

_GREETING = "Hello"
_MESSAGE_SIZE = 256
_C_SPACE = " \t\n\v\f\r"
_DIGITS = "0123456789"


def extract_pid(message: str) -> int:
    """Return the process id that follows ``Hello`` in ``message``, or -1.

    Raises ``ValueError`` if the greeting is followed by something that is not a number.
    """
    pos = message.find(_GREETING)
    if pos < 0:
        return -1
    rest = message[pos + len(_GREETING):].lstrip(_C_SPACE)
    if not rest:
        return -1
    digits = rest[: len(rest) - len(rest.lstrip(_DIGITS))]
    if not digits:
        raise ValueError(f"no process id after greeting in {message!r}")
    return int(digits)


def discover_peer(port: int = BROADCAST_PORT) -> tuple[str, bool]:
    """Broadcast a greeting on ``port`` until another instance answers.

    Returns the peer's IPv4 address and whether this side should listen
    (true when its process id is the lower one).
    """
    pid = os.getpid()
    outgoing = f"{_GREETING} {pid}".encode()
    with UdpSocket.create(port) as sock:
        while True:
            sock.broadcast(outgoing)
            time.sleep(1)
            try:
                data, sender = sock.receive_from(_MESSAGE_SIZE)
            except OSError as exc:
                print(f"Error receiving broadcast: {exc.strerror or exc}")
                continue
            if not data:
                continue
            incoming = data.split(b"\0", 1)[0]
            if incoming == outgoing:
                continue
            text = incoming.decode("latin-1")
            try:
                peer_pid = extract_pid(text)
            except ValueError:
                continue
            if peer_pid < 1:
                continue
            print(f"Received broadcast from {sender}: {text}")
            print(f"Discovered peer: {sender}")
            return sender, pid < peer_pid


def _open_connection(peer: str, should_listen: bool) -> TcpConnection | None:
    if should_listen:
        print("Starting server...")
        try:
            listener = TcpConnectionListener.listen(TCP_PORT)
        except OSError as exc:
            print(f"Failed to create listener: {exc}")
            return None
        with listener:
            try:
                connection = listener.accept()
            except OSError as exc:
                print(f"Failed to accept connection: {exc}")
                return None
    else:
        print(f"Connecting to [{peer}]...")
        try:
            connection = TcpConnection.connect(peer, TCP_PORT)
        except OSError as exc:
            print(f"Failed to connect to [{peer}]: {exc}")
            return None
    connection.set_non_blocking()
    return connection


def _control_loop(audio: IntercomAudio) -> None:
    audio.start_playback()
    recording = False
    while True:
        print("Press ' ' to toggle recording/playback, 'q' to quit")
        try:
            line = input()
        except EOFError:
            return
        if not line:
            continue
        audio.stop_recording()
        audio.stop_playback()
        if line[0] == " ":
            if recording:
                print("stop recording, start playback")
                audio.start_playback()
            else:
                print("start recording, stop playback")
                audio.start_recording()
            recording = not recording
        elif line[0] == "q":
            return


def main(argv: list[str] | None = None) -> int:
    """Run the intercom; returns the process exit status."""
    parser = argparse.ArgumentParser(
        prog="lanintercom",
        description="Find another intercom on the local network and talk to it.",
    )
    parser.parse_args(argv)

    try:
        peer, should_listen = discover_peer()
    except OSError as exc:
        print(f"Failed to create UDP socket: {exc}")
        print("Failed to discover peer", file=sys.stderr)
        return 1
    if should_listen:
        print("Listening for incoming connections...")
    else:
        print("Connecting to peer...")

    pygame.init()
    try:
        connection = _open_connection(peer, should_listen)
        if connection is None:
            return 1
        with connection:
            try:
                audio = IntercomAudio.create(connection)
            except RuntimeError as exc:
                print(exc)
                print("Failed to create audio streams")
                return 1
            with audio:
                _control_loop(audio)
    finally:
        pygame.quit()
    return 0


if __name__ == "__main__":
    sys.exit(main())