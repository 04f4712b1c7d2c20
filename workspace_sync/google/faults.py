"""Classification of transport-level faults that are safe to retry.

httpx maps low-level socket failures onto its own exception hierarchy and
chains the original ``OSError`` as ``__cause__``::

    httpx.TransportError
    ├── httpx.TimeoutException      retry (timeout-marked)
    ├── httpx.NetworkError
    │   ├── ConnectError            retry when refused/reset in the chain
    │   ├── ReadError               retry when reset/EOF in the chain
    │   ├── WriteError              retry when broken pipe in the chain
    │   └── CloseError              retry (operation on a closed connection)
    └── httpx.ProtocolError
        └── RemoteProtocolError     retry when the peer closed the connection

Well-formed API error responses are never transient here; they are classified
by :mod:`workspace_sync.google.classify` instead.
"""

from __future__ import annotations

import errno
import re
import typing as typ

import httpx

from .errors import GoogleAPIError

_TRANSIENT_OS_ERRORS: tuple[type[BaseException], ...] = (
    EOFError,
    ConnectionResetError,
    ConnectionRefusedError,
    BrokenPipeError,
)

_TRANSIENT_ERRNOS = frozenset({errno.ECONNRESET, errno.ECONNREFUSED, errno.EPIPE})

_ALWAYS_TRANSIENT_HTTPX: tuple[type[BaseException], ...] = (
    httpx.TimeoutException,
    httpx.CloseError,
)

# Wrapped transport errors sometimes lose their typed cause; match the text.
_TRANSIENT_MESSAGE = re.compile(
    r"connection refused|connection reset|broken pipe|peer closed connection"
    r"|server disconnected|\beof\b"
)

# Guards against pathological self-referential exception chains.
_MAX_CHAIN_DEPTH = 16


def _iter_chain(exc: BaseException) -> typ.Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    depth = 0
    while current is not None and id(current) not in seen and depth < _MAX_CHAIN_DEPTH:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__
        depth += 1


def _is_transient_link(exc: BaseException) -> bool:
    if isinstance(exc, _TRANSIENT_OS_ERRORS + _ALWAYS_TRANSIENT_HTTPX):
        return True
    if isinstance(exc, OSError) and exc.errno in _TRANSIENT_ERRNOS:
        return True
    if isinstance(exc, httpx.TransportError):
        text = str(exc).lower()
        return _TRANSIENT_MESSAGE.search(text) is not None
    return False


def is_transient(exc: BaseException | None) -> bool:
    """Return True when a failure is a retry-safe transport fault.

    The exception and everything chained beneath it are inspected, so an
    ``httpx.ReadError`` caused by ``ConnectionResetError`` is transient while
    an ``httpx.ConnectError`` for an unresolvable host is not.
    """
    if exc is None or isinstance(exc, GoogleAPIError):
        return False
    return any(_is_transient_link(link) for link in _iter_chain(exc))
