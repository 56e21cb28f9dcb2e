"""Stream builders and HTTP fakes shared by the tests."""

import json
from typing import Iterable, List, Optional


def sse_line(content: Optional[str], finish_reason=None) -> str:
    """One ``data:`` line carrying a content delta."""
    delta = {} if content is None else {"content": content}
    chunk = {"choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}]}
    return f"data: {json.dumps(chunk)}\n"


def sse_stream(*contents: str, done: bool = True) -> str:
    text = "".join(sse_line(c) for c in contents)
    if done:
        text += "data: [DONE]\n"
    return text


def split_every(data: bytes, size: int) -> List[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


class FakeResponse:
    """Just enough of requests.Response for the connection manager."""

    def __init__(self, status_code: int = 200, chunks: Iterable[bytes] = (), body: bytes = b"",
                 error: Optional[Exception] = None, raw: object = True):
        self.status_code = status_code
        self._chunks = list(chunks)
        self._body = body
        self._error = error
        self.raw = object() if raw else None
        self.closed = False

    def iter_content(self, chunk_size=None):
        for chunk in self._chunks:
            if self.closed:
                return
            yield chunk
        if self._error is not None:
            raise self._error

    def json(self):
        return json.loads(self._body.decode("utf-8"))

    @property
    def text(self):
        return self._body.decode("utf-8", errors="replace")

    def close(self):
        self.closed = True


class FakeSession:
    """Records POSTs and replays queued responses (or raises queued errors)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def post(self, url, **kwargs):
        self.requests.append({"url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        self.closed = True

