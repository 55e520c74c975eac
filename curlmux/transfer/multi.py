"""
Multiplexor - Many Transfers, One Control Thread

Design Decision: Driving Concurrent Transfers
==============================================

Options Considered:
1. One thread per transfer
   - Simple blocking code per transfer
   - Thread count grows with the batch, callbacks race each other

2. asyncio event loop with socket callbacks
   - Scales well
   - Forces every caller into async code

3. Single-threaded loop over libcurl's multi interface
   - libcurl does the socket work, we only pace and dispatch
   - Callbacks never run concurrently

Decision: Single-threaded cooperative loop
- Advance: curl_multi_perform reports (status, active transfers)
- Drain: when the active count drops, read every completion record and
  dispatch it to the callback registered for that handle
- Wait: block on curl_multi_select (bounded), then pad the iteration
  up to a minimum interval so a quiet batch does not spin the CPU

Loop per run():
```
Idle -> Advancing -> Draining (active dropped) -> Advancing
                  -> Waiting  (still active)   -> Advancing
                  -> Completed (OK, 0 active) | Aborted (fatal status)
```

A fatal multi status ends run() immediately. Transfers still in flight
at that point are not drained and their callbacks never fire; they stay
registered (see ``pending``) until the next run() or close().
"""

import logging
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional

from ..constants import (
    DEFAULT_LOOP_TIMEOUT,
    DEFAULT_LOOP_WAIT_TIME,
    MultiCode,
    SELECT_INDETERMINATE,
)
from ..exceptions import DuplicateHandleError, MultiError
from .engine import Completion, Engine, Progress, PycurlEngine
from .handle import CurlHandle

logger = logging.getLogger(__name__)


# Completion callback: (handle, per-transfer result code)
Callback = Callable[[CurlHandle, int], None]


class Multi:
    """
    Runs many transfers concurrently on the calling thread.

    Usage::

        with Multi({pycurl.M_MAX_HOST_CONNECTIONS: 4}) as multi:
            multi.add(handle, on_done)
            status = multi.run()

    Not thread-safe and not reentrant: ``add`` and ``run`` must be called
    from the owning thread, and never from inside a completion callback.
    """

    def __init__(self, options: Optional[Mapping[int, Any]] = None,
                 engine: Optional[Engine] = None):
        """
        Create the engine context and apply engine-level options once.

        Args:
            options: Flat map of multi options (e.g. pycurl.M_PIPELINING)
            engine: Engine to drive, a new PycurlEngine when omitted

        Raises:
            MultiError: the engine context cannot be created or an
                option is rejected
        """
        self._engine: Optional[Engine] = engine if engine is not None else PycurlEngine()

        try:
            for option, value in (options or {}).items():
                self._engine.setopt(option, value)
        except MultiError:
            self._engine.close()
            self._engine = None
            raise

        # Pacing (seconds)
        self.loop_wait_time = DEFAULT_LOOP_WAIT_TIME
        self.loop_timeout = DEFAULT_LOOP_TIMEOUT

        # handle -> callback (None means "no callback")
        self.handles: Dict[CurlHandle, Optional[Callback]] = {}
        self._completed: Deque[Completion] = deque()
        self._running = False

    def __enter__(self) -> 'Multi':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._engine is None

    @property
    def pending(self) -> List[CurlHandle]:
        """Handles registered and not yet completed."""
        return list(self.handles)

    def _ensure_open(self) -> Engine:
        if self._engine is None:
            raise MultiError("Multiplexor has been closed")
        return self._engine

    def add(self, handle: CurlHandle, callback: Optional[Callback] = None) -> None:
        """
        Register a transfer and the callback to run when it completes.

        The transfer makes no progress until ``run()`` is called.

        Raises:
            DuplicateHandleError: the handle is still registered
            MultiError: the Multiplexor is closed or currently running
        """
        engine = self._ensure_open()

        if self._running:
            raise MultiError("Cannot add transfers while run() is in progress")
        if handle in self.handles:
            raise DuplicateHandleError(f"{handle!r} is already registered")
        if callback is not None and not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")

        engine.add_handle(handle)
        self.handles[handle] = callback

    def run(self) -> int:
        """
        Drive every registered transfer to completion.

        Returns:
            MultiCode.OK once no transfer is active, otherwise the first
            fatal multi status reported by the engine

        Raises:
            MultiError: the Multiplexor is closed or run() was re-entered
        """
        self._ensure_open()

        if self._running:
            raise MultiError("run() is not reentrant")

        self._running = True
        try:
            return self._loop()
        finally:
            self._running = False

    def _loop(self) -> int:
        # Completions read before an earlier run() was interrupted
        self._dispatch()

        # Everything registered counts as active until the engine says otherwise,
        # so a transfer finishing on the very first advance is still drained
        prev_active = len(self.handles)

        while True:
            progress = self._exec()

            if not progress.ok:
                self._abort(progress)
                return progress.status

            # One less is running, meaning one has finished
            if progress.active < prev_active:
                self._read()

            if progress.active == 0:
                return progress.status

            self._wait()
            prev_active = progress.active

    def _exec(self) -> Progress:
        """
        Advance all transfers once.

        libcurl no longer returns CALL_MULTI_PERFORM, but when an engine
        does, block on the readiness-wait before asking again instead of
        calling perform() in a tight loop.
        """
        engine = self._ensure_open()
        progress = engine.perform()

        while progress.retry_now and progress.active > 0:
            logger.debug(f"Engine asked for an immediate retry ({progress.active} active)")
            engine.select(self.loop_timeout)
            progress = engine.perform()

        if progress.retry_now:
            # Nothing left to retry for
            progress = Progress(status=MultiCode.OK, active=progress.active)

        return progress

    def _wait(self) -> None:
        """
        Wait for activity, but never spend less than ``loop_wait_time``.

        With few transfers curl_multi_select can return almost instantly,
        thousands of times per second. Padding each iteration to the
        minimum interval caps how often the loop runs.
        """
        engine = self._ensure_open()
        start = time.monotonic()

        ready = engine.select(self.loop_timeout)

        if ready == SELECT_INDETERMINATE:
            # No usable timing signal from select
            time.sleep(self.loop_wait_time)

        waited = time.monotonic() - start
        if waited < self.loop_wait_time:
            time.sleep(self.loop_wait_time - waited)

    def _read(self) -> None:
        """Queue every available completion record, then dispatch the queue."""
        engine = self._ensure_open()
        self._completed.extend(engine.info_read())
        self._dispatch()

    def _dispatch(self) -> None:
        """
        Deregister and call back every queued completion.

        Each handle is deregistered before its callback runs, so a
        completion is dispatched at most once even if the callback
        raises. A raising callback does not stop the rest of the batch;
        the first exception is re-raised once the batch is dispatched.
        Records still queued when a BaseException escapes stay registered
        and are dispatched at the start of the next run().
        """
        engine = self._ensure_open()
        error: Optional[BaseException] = None

        while self._completed:
            handle, result = self._completed.popleft()
            callback = self.handles.pop(handle, None)

            try:
                engine.remove_handle(handle)
            except MultiError as e:
                logger.error(f"Cannot deregister {handle!r}: {e}")
                if error is None:
                    error = e

            if callback is None:
                logger.debug(f"{handle!r} finished (result={result}) without callback")
                continue

            try:
                callback(handle, result)
            except Exception as e:
                if error is None:
                    error = e
                else:
                    logger.error(f"Callback for {handle!r} failed: {e}")

        if error is not None:
            raise error

    def _abort(self, progress: Progress) -> None:
        if self.handles:
            logger.warning(
                f"Multi run aborted with status {progress.status}; "
                f"{len(self.handles)} transfer(s) abandoned without callback"
            )
        else:
            logger.warning(f"Multi run aborted with status {progress.status}")

    def close(self) -> None:
        """
        Release the engine context.

        Safe to call more than once; only the first call releases.
        """
        if self._engine is None:
            return
        if self._running:
            raise MultiError("Cannot close while run() is in progress")

        engine, self._engine = self._engine, None
        self.handles.clear()
        self._completed.clear()
        engine.close()
