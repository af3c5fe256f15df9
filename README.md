# fdwrap

Small helpers, in the module `fdwrap.osutil`, that create file
descriptors with the close-on-exec flag set, so that they are not
inherited by programs started with `exec`.

Each helper first asks the kernel to set the flag atomically
(`SOCK_CLOEXEC`, `F_DUPFD_CLOEXEC`, `MSG_CMSG_CLOEXEC`). If the kernel
rejects that request with `EINVAL`, the helper makes the plain call and
then sets `FD_CLOEXEC` itself. Any other failure is raised as `OSError`.
A new descriptor whose flag cannot be set is closed, and the error is
raised, rather than the descriptor being returned.

## Installation

```
pip install fdwrap
```

The package needs a POSIX system. `epoll_create_cloexec` needs Linux;
elsewhere it raises `OSError` with `errno.ENOSYS`.

## Functions

- `socket_cloexec(domain, type, protocol=0)` returns a `socket.socket`.
- `dupfd_cloexec(fd, minfd=0)` duplicates `fd` (an integer or anything
  with a `fileno()` method) onto the lowest free descriptor number that is
  at least `minfd`, and returns the new descriptor as an integer. The
  caller owns it and closes it with `os.close`.
- `recvmsg_cloexec(sock, bufsize, ancbufsize=0, flags=0)` works like
  `sock.recvmsg` and returns `(data, ancdata, msg_flags, address)`.
  Descriptors received in `SCM_RIGHTS` messages are close-on-exec. When
  the flag has to be set afterwards and that fails for a descriptor, the
  descriptor is closed and appears as `-1` in the ancillary data.
- `epoll_create_cloexec()` returns a `select.epoll` object.
- `accept_cloexec(sock)` accepts a connection on a listening socket and
  returns `(connection, address)` like `sock.accept`.

## Usage

```python
import array
import os
import socket

from fdwrap.osutil import (
    accept_cloexec,
    dupfd_cloexec,
    epoll_create_cloexec,
    recvmsg_cloexec,
    socket_cloexec,
)

# A Unix stream socket created with close-on-exec set
sock = socket_cloexec(socket.AF_UNIX, socket.SOCK_STREAM, 0)
sock.close()

# Duplicate a descriptor to the lowest free number >= 10
left, right = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
new_fd = dupfd_cloexec(left, 10)
os.close(new_fd)

# Pass a descriptor over the pair and receive it close-on-exec
r, w = os.pipe()
left.sendmsg([b"x"], [(socket.SOL_SOCKET, socket.SCM_RIGHTS, array.array("i", [r]))])
data, ancdata, msg_flags, address = recvmsg_cloexec(
    right, 16, socket.CMSG_SPACE(array.array("i").itemsize)
)

# An epoll object with close-on-exec set (Linux)
ep = epoll_create_cloexec()
ep.close()

# Accept a connection on a listening socket
listener = socket_cloexec(socket.AF_INET, socket.SOCK_STREAM)
listener.bind(("127.0.0.1", 0))
listener.listen()
client = socket.create_connection(listener.getsockname())
conn, addr = accept_cloexec(listener)
```

## What it does not do

The package only opens descriptors with the flag set. It does not run an
event loop, watch descriptors, or pass messages of its own; those are left
to the caller, using the returned sockets, integers and epoll objects.

## Running the tests

```
pip install -e ".[test]"
pytest
```