"""Push-to-talk voice intercom over the local network: peer discovery, sockets and audio streaming."""

__version__ = "0.1.0"
__all__ = ["__version__"]