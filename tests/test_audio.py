import socket

import pytest

from lanintercom.audio import CallbackResult, IntercomAudio, play_callback, record_callback
from lanintercom.net import TcpConnection


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    conn = TcpConnection(a)
    yield conn, b
    conn.close()
    b.close()


class FakeDevice:
    def __init__(self):
        self.paused = True
        self.closed = False
        self.calls = []

    def pause(self, flag):
        self.calls.append(flag)
        self.paused = bool(flag)

    def close(self):
        self.closed = True


def test_record_sends_data(pair):
    conn, peer = pair
    assert record_callback(conn, b"\x01\x02\x03\x04") is CallbackResult.CONTINUE
    assert peer.recv(16) == b"\x01\x02\x03\x04"


def test_record_without_input_continues(pair):
    conn, _ = pair
    assert record_callback(conn, None) is CallbackResult.CONTINUE


def test_record_on_broken_socket_completes(pair):
    conn, _ = pair
    conn.close()
    assert record_callback(conn, b"\x00\x00") is CallbackResult.COMPLETE


def test_play_without_data_is_silent(pair):
    conn, _ = pair
    conn.set_non_blocking()
    data, result = play_callback(conn, 8)
    assert data == bytes(16)
    assert result is CallbackResult.CONTINUE


def test_play_pads_short_read(pair):
    conn, peer = pair
    conn.set_non_blocking()
    peer.sendall(b"\x01\x02\x03\x04")
    data, result = play_callback(conn, 4)
    assert data == b"\x01\x02\x03\x04" + bytes(4)
    assert result is CallbackResult.CONTINUE


def test_play_full_block(pair):
    conn, peer = pair
    conn.set_non_blocking()
    block = bytes(range(8))
    peer.sendall(block)
    data, result = play_callback(conn, 4)
    assert data == block
    assert result is CallbackResult.CONTINUE


def test_play_after_peer_closed_completes(pair):
    conn, peer = pair
    conn.set_non_blocking()
    peer.close()
    data, result = play_callback(conn, 3)
    assert data == bytes(6)
    assert result is CallbackResult.COMPLETE


def test_start_and_stop_toggle_devices(pair):
    conn, _ = pair
    rec, play = FakeDevice(), FakeDevice()
    audio = IntercomAudio(conn, rec, play)
    audio.start_recording()
    assert rec.paused is False
    assert play.paused is True
    audio.stop_recording()
    audio.start_playback()
    assert rec.paused is True
    assert play.paused is False
    audio.stop_playback()
    assert play.calls == [0, 1]


def test_close_releases_devices_once(pair):
    conn, _ = pair
    rec, play = FakeDevice(), FakeDevice()
    audio = IntercomAudio(conn, rec, play)
    audio.start_playback()
    audio.close()
    audio.close()
    assert rec.closed and play.closed
    assert play.paused is True
    audio.start_recording()
    assert rec.calls == [1]


def test_context_manager_closes(pair):
    conn, _ = pair
    rec, play = FakeDevice(), FakeDevice()
    with IntercomAudio(conn, rec, play) as audio:
        audio.start_recording()
    assert rec.closed is True
    assert play.closed is True