"""Create sockets, duplicates and event descriptors that are close-on-exec.

Each function first asks the kernel to set the close-on-exec flag atomically.
If the kernel rejects that request as unsupported, the plain call is made
instead and the flag is set afterwards. Any other failure is raised as
:class:`OSError`. A descriptor whose flag cannot be set is closed rather than
returned.
"""

from __future__ import annotations

import array
import errno
import fcntl
import os
import select
import socket
import sys

_LINUX = sys.platform.startswith("linux")

SOCK_CLOEXEC: int = getattr(socket, "SOCK_CLOEXEC", 0o2000000 if _LINUX else 0)
F_DUPFD_CLOEXEC: int | None = getattr(
    fcntl, "F_DUPFD_CLOEXEC", 1030 if _LINUX else None
)
MSG_CMSG_CLOEXEC: int = getattr(
    socket, "MSG_CMSG_CLOEXEC", 0x40000000 if _LINUX else 0
)

__all__ = [
    "socket_cloexec",
    "dupfd_cloexec",
    "recvmsg_cloexec",
    "epoll_create_cloexec",
    "accept_cloexec",
]


def _fileno(fd) -> int:
    return fd if isinstance(fd, int) else fd.fileno()


def _set_cloexec(fd: int) -> None:
    flags = fcntl.fcntl(fd, fcntl.F_GETFD)
    fcntl.fcntl(fd, fcntl.F_SETFD, flags | fcntl.FD_CLOEXEC)


def _set_cloexec_or_close(fd: int) -> int:
    try:
        _set_cloexec(fd)
    except OSError:
        os.close(fd)
        raise
    return fd


def _set_cloexec_or_drop(fd: int) -> int:
    """Set the flag on a received descriptor; close it and yield -1 on failure."""
    try:
        return _set_cloexec_or_close(fd)
    except OSError:
        return -1


def _is_einval(exc: OSError) -> bool:
    return exc.errno == errno.EINVAL


def socket_cloexec(domain, type, protocol=0) -> socket.socket:
    """Create a socket whose descriptor is close-on-exec."""
    if SOCK_CLOEXEC:
        try:
            return socket.socket(domain, type | SOCK_CLOEXEC, protocol)
        except OSError as exc:
            if not _is_einval(exc):
                raise

    sock = socket.socket(domain, type, protocol)
    try:
        _set_cloexec(sock.fileno())
    except OSError:
        sock.close()
        raise
    return sock


def dupfd_cloexec(fd, minfd=0) -> int:
    """Duplicate ``fd`` onto the lowest free descriptor >= ``minfd``, close-on-exec."""
    fd = _fileno(fd)
    if F_DUPFD_CLOEXEC is not None:
        try:
            return fcntl.fcntl(fd, F_DUPFD_CLOEXEC, minfd)
        except OSError as exc:
            if not _is_einval(exc):
                raise

    newfd = fcntl.fcntl(fd, fcntl.F_DUPFD, minfd)
    return _set_cloexec_or_close(newfd)


def _cloexec_rights(cmsg):
    level, kind, data = cmsg
    if level != socket.SOL_SOCKET or kind != socket.SCM_RIGHTS:
        return cmsg

    fds = array.array("i")
    usable = len(data) - len(data) % fds.itemsize
    fds.frombytes(data[:usable])
    fixed = array.array("i", (_set_cloexec_or_drop(fd) for fd in fds))
    return (level, kind, fixed.tobytes() + bytes(data[usable:]))


def recvmsg_cloexec(sock, bufsize, ancbufsize=0, flags=0):
    """Receive a message like ``socket.recvmsg``; passed descriptors are close-on-exec.

    Returns ``(data, ancdata, msg_flags, address)``. In the fallback path a
    received descriptor whose flag cannot be set is closed and reported as -1.
    """
    if MSG_CMSG_CLOEXEC:
        try:
            return sock.recvmsg(bufsize, ancbufsize, flags | MSG_CMSG_CLOEXEC)
        except OSError as exc:
            if not _is_einval(exc):
                raise

    data, ancdata, msg_flags, address = sock.recvmsg(bufsize, ancbufsize, flags)
    return data, [_cloexec_rights(cmsg) for cmsg in ancdata], msg_flags, address


def epoll_create_cloexec():
    """Create an epoll object whose descriptor is close-on-exec."""
    if getattr(select, "epoll", None) is None:
        raise OSError(errno.ENOSYS, "epoll is not available on this platform")

    poller = select.epoll()
    try:
        _set_cloexec(poller.fileno())
    except OSError:
        poller.close()
        raise
    return poller


def accept_cloexec(sock):
    """Accept a connection on ``sock``; the new socket is close-on-exec.

    Returns ``(connection, address)`` like ``socket.accept``.
    """
    conn, address = sock.accept()
    try:
        _set_cloexec(conn.fileno())
    except OSError:
        conn.close()
        raise
    return conn, address