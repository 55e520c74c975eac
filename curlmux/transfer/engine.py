"""
Transfer Engine Boundary

Design Decision: Engine Abstraction
===================================

Options Considered:
1. Call pycurl.CurlMulti directly from the control loop
   - Fewest moving parts
   - Loop cannot be exercised without real sockets

2. Narrow engine protocol with a pycurl adapter
   - Loop depends only on six primitives
   - Tests can script activity counts and completions

Decision: Narrow protocol (``Engine``) + ``PycurlEngine`` adapter
- ``perform()`` -> Progress(status, active)
- ``select(timeout)`` -> ready descriptor count, or -1 when unknown
  (including when libcurl has no descriptor to watch)
- ``info_read()`` -> completion records, never blocks
- ``add_handle`` / ``remove_handle`` / ``setopt`` / ``close``

pycurl raises ``pycurl.error`` for multi codes other than OK and
CALL_MULTI_PERFORM. The adapter turns those back into status codes so
that the loop sees one status per advance, as libcurl reports it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Tuple

import pycurl

from ..constants import MultiCode, SELECT_INDETERMINATE, TRANSFER_OK
from ..exceptions import MultiError
from .handle import CurlHandle

logger = logging.getLogger(__name__)


# (transfer handle, per-transfer result code)
Completion = Tuple[CurlHandle, int]


@dataclass(frozen=True)
class Progress:
    """Outcome of one advance step."""
    status: int
    active: int

    @property
    def ok(self) -> bool:
        return self.status == MultiCode.OK

    @property
    def retry_now(self) -> bool:
        """Legacy CURLM_CALL_MULTI_PERFORM: the engine wants another call at once."""
        return self.status == MultiCode.CALL_MULTI_PERFORM


class Engine(Protocol):
    """Primitives the Multiplexor needs from a transfer engine."""

    def setopt(self, option: int, value: Any) -> None: ...

    def perform(self) -> Progress: ...

    def select(self, timeout: float) -> int: ...

    def info_read(self) -> List[Completion]: ...

    def add_handle(self, handle: CurlHandle) -> None: ...

    def remove_handle(self, handle: CurlHandle) -> None: ...

    def close(self) -> None: ...


class PycurlEngine:
    """
    Engine backed by a ``pycurl.CurlMulti`` context.

    Keeps a map from the raw ``pycurl.Curl`` objects reported by
    ``info_read`` back to the ``CurlHandle`` wrappers that were added.
    """

    def __init__(self):
        try:
            self._multi = pycurl.CurlMulti()
        except (pycurl.error, MemoryError) as e:
            raise MultiError(f"Cannot create curl multi context: {e}") from e

        self._transfers: Dict[pycurl.Curl, CurlHandle] = {}
        self._active = 0

    def setopt(self, option: int, value: Any) -> None:
        try:
            self._multi.setopt(option, value)
        except (pycurl.error, TypeError, ValueError) as e:
            raise MultiError(f"Rejected multi option {option}={value!r}: {e}") from e

    def perform(self) -> Progress:
        try:
            status, self._active = self._multi.perform()
        except pycurl.error as e:
            code = e.args[0] if e.args else MultiCode.INTERNAL_ERROR
            logger.debug(f"curl_multi_perform failed: {e}")
            return Progress(status=int(code), active=self._active)
        return Progress(status=int(status), active=self._active)

    def select(self, timeout: float) -> int:
        """
        Block until a transfer's socket is ready or ``timeout`` elapses.

        With no descriptors to watch (name resolution, connection not yet
        started) curl_multi_select would return 0 at once, which looks like
        "nothing ready". Report the indeterminate sentinel instead.
        """
        try:
            read, write, exc = self._multi.fdset()
            if not (read or write or exc):
                return SELECT_INDETERMINATE
            return self._multi.select(timeout)
        except pycurl.error as e:
            raise MultiError(f"Readiness wait failed: {e}") from e

    def info_read(self) -> List[Completion]:
        completions: List[Completion] = []

        while True:
            queued, succeeded, failed = self._multi.info_read()

            for curl in succeeded:
                completions.append((self._transfers[curl], TRANSFER_OK))
            for curl, errno, errmsg in failed:
                handle = self._transfers[curl]
                handle.error_message = errmsg
                completions.append((handle, errno))

            if queued == 0:
                break

        return completions

    def add_handle(self, handle: CurlHandle) -> None:
        try:
            self._multi.add_handle(handle.curl)
        except pycurl.error as e:
            raise MultiError(f"Cannot add transfer: {e}") from e
        self._transfers[handle.curl] = handle

    def remove_handle(self, handle: CurlHandle) -> None:
        self._transfers.pop(handle.curl, None)
        try:
            self._multi.remove_handle(handle.curl)
        except pycurl.error as e:
            raise MultiError(f"Cannot remove transfer: {e}") from e

    def close(self) -> None:
        for curl in list(self._transfers):
            self._multi.remove_handle(curl)
        self._transfers.clear()
        self._multi.close()
