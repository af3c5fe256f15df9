"""Create sockets, duplicated descriptors and epoll objects with close-on-exec set."""

__version__ = "0.1.0"
__all__ = ["osutil"]