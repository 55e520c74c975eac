import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, List, Optional, Tuple

import pytest

from curlmux.constants import MultiCode
from curlmux.transfer import Progress


class FakeHandle:
    """Stand-in transfer handle, hashable by identity."""

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"<FakeHandle {self.name}>"


# (status, active count, completions surfaced by this advance)
Step = Tuple[int, int, List[Tuple[Any, int]]]


class FakeEngine:
    """
    Scripted engine: each perform() consumes one step.

    Completions listed in a step become readable through info_read()
    after that step's perform(). Every primitive call is logged in
    ``calls`` so tests can assert on ordering.
    """

    def __init__(self, steps: Optional[List[Step]] = None, select_result: int = 0,
                 reject_options: bool = False, fail_remove: bool = False):
        self.steps = list(steps or [])
        self.select_result = select_result
        self.reject_options = reject_options
        self.fail_remove = fail_remove

        self.calls: List[str] = []
        self.options = {}
        self.added: List[Any] = []
        self.removed: List[Any] = []
        self.select_timeouts: List[float] = []
        self.close_calls = 0
        self._queue: List[Tuple[Any, int]] = []

    def setopt(self, option, value):
        from curlmux.exceptions import MultiError

        if self.reject_options:
            raise MultiError(f"unknown option {option}")
        self.options[option] = value

    def perform(self) -> Progress:
        self.calls.append('perform')
        if not self.steps:
            raise AssertionError("perform() called after the script ran out")
        status, active, finished = self.steps.pop(0)
        self._queue.extend(finished)
        return Progress(status=status, active=active)

    def select(self, timeout: float) -> int:
        self.calls.append('select')
        self.select_timeouts.append(timeout)
        return self.select_result

    def info_read(self):
        self.calls.append('info_read')
        records, self._queue = self._queue, []
        return records

    def add_handle(self, handle):
        self.added.append(handle)

    def remove_handle(self, handle):
        from curlmux.exceptions import MultiError

        self.removed.append(handle)
        if self.fail_remove:
            raise MultiError(f"cannot remove {handle!r}")

    def close(self):
        self.close_calls += 1


OK = MultiCode.OK
RETRY = MultiCode.CALL_MULTI_PERFORM


@pytest.fixture
def make_engine():
    return FakeEngine


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path == '/json':
            self._send(200, 'application/json; charset=utf-8', json.dumps({'ok': True}).encode())
        elif self.path == '/text':
            self._send(200, 'text/plain', b'hello')
        elif self.path == '/slow':
            time.sleep(0.2)
            self._send(200, 'text/plain', b'slow')
        elif self.path == '/redirect':
            self.send_response(302)
            self.send_header('Location', '/json')
            self.send_header('X-Hop', 'first')
            self.send_header('Content-Length', '0')
            self.end_headers()
        elif self.path == '/missing':
            self._send(404, 'text/plain', b'not found')
        else:
            self._send(500, 'text/plain', b'unexpected path')

    def do_POST(self):
        length = int(self.headers.get('Content-Length', 0))
        body = self.rfile.read(length)
        payload = json.dumps({'method': 'POST', 'echo': body.decode()}).encode()
        self._send(201, 'application/json', payload)

    def _send(self, code: int, content_type: str, body: bytes):
        self.send_response(code)
        self.send_header('Content-Type', content_type)
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def http_server():
    """Base URL of a local HTTP server running in a background thread."""
    server = ThreadingHTTPServer(('127.0.0.1', 0), _Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"

    server.shutdown()
    server.server_close()
    thread.join(timeout=5)
