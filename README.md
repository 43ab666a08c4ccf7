# lanintercom

A push-to-talk voice intercom for two computers on the same local network.

Start the program on both machines. Each copy sends a UDP broadcast
greeting (`Hello <pid>`) on port 55430 about once a second until it hears a
greeting from another copy. The copy with the lower process id listens for a
TCP connection on port 6879 and the other copy connects to it. Audio then
flows over that connection as 16-bit mono samples at 44.1 kHz.

## Installation

```
pip install .
```

Sound is recorded and played through `pygame`, using the first capture device
and the first playback device that SDL reports. The machine needs a working
microphone and speaker.

## Usage

Run this on each machine:

```
lanintercom
```

Once the peers have found each other and connected, the program plays
whatever the other side sends. At the prompt:

- type a space and press Enter to switch between talking (recording) and
  listening (playback);
- type `q` and press Enter, or close standard input, to quit.

Empty lines are ignored. The command takes no options besides `--help`.
It exits with status 1 if the UDP socket, the TCP connection or the audio
devices cannot be opened.

## Library use

`lanintercom.net` holds small socket wrappers:

- `TcpConnection.connect(hostname, port)` resolves an IPv4 address and
  connects with `TCP_NODELAY` set. `read(length)` returns exactly `length`
  bytes or raises `ConnectionError` if the peer closes first.
  `read_once(length)` makes one `recv` call and returns `None` if nothing
  could be read, or `b""` once the peer has closed. `write(data)` sends
  everything. `set_non_blocking()`, `fileno()` and `close()` work as their
  names say.
- `TcpConnectionListener.listen(port)` binds to every interface. `accept()`
  returns a `TcpConnection`, and `stop()` closes the listener.
- `UdpSocket.create(port)` opens a broadcast-capable UDP socket.
  `broadcast(data)` sends to the broadcast address on the same port and logs
  any failure instead of raising it. `receive_from(length)` returns
  `(data, sender_ip)`. `send_to(data, address)` raises `ValueError` for an
  address that is not a dotted-quad IPv4 address.

All three classes are context managers.

```python
from lanintercom.net import TcpConnectionListener
from lanintercom.app import extract_pid

extract_pid("Hello 4242")  # -> 4242
extract_pid("Goodbye")     # -> -1

with TcpConnectionListener.listen(6879) as listener:
    with listener.accept() as conn:
        conn.write(b"ping")
```

`lanintercom.app` also provides `discover_peer(port)`, which returns the
peer's address and whether this side should listen, and `main(argv)`, which
runs the command.

`lanintercom.audio.IntercomAudio.create(connection)` opens the audio devices
for an open `TcpConnection`. Both streams start paused. Use
`start_recording()`, `stop_recording()`, `start_playback()`,
`stop_playback()` and `close()` to control them. `record_callback` and
`play_callback` move one block of audio between the devices and the socket
and return a `CallbackResult` (`CONTINUE` or `COMPLETE`). Incoming blocks
are padded with silence.

## Limitations

- Only two peers: discovery stops at the first other greeting it hears.
- Ports, sample rate and block size are fixed. Audio is sent raw, with no
  compression or encryption.
- IPv4 only.

## Development

```
pip install -e .[test]
pytest
```