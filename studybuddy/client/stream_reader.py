"""
Byte stream decoding for streamed chat responses.

The HTTP body arrives in arbitrarily sized chunks. A UTF-8 character can be
split across two chunks, so decoding each chunk on its own would corrupt
it. StreamReader keeps one incremental decoder for the whole stream and
flushes it when the source is exhausted.
"""

import codecs
from typing import Callable, Iterable, Iterator, Tuple, Union

ReadCallable = Callable[[], Tuple[bool, bytes]]
ByteSource = Union[Iterable[bytes], ReadCallable]


class StreamReader:
    """Turns a byte-chunk source into decoded text fragments.

    The source is either an iterable of ``bytes`` (for example
    ``response.iter_content(chunk_size=None)``), where exhaustion means
    done, or a ``read()`` callable returning ``(done, chunk)`` pairs.

    Concatenating everything the reader yields is equal to decoding the
    whole byte stream in one go.
    """

    def __init__(self, source: ByteSource, encoding: str = "utf-8", errors: str = "replace"):
        self.source = source
        self.encoding = encoding
        self.errors = errors
        self.bytes_read = 0

    def _chunks(self) -> Iterator[bytes]:
        if callable(self.source):
            while True:
                done, chunk = self.source()
                if chunk:
                    yield chunk
                if done:
                    return
        else:
            for chunk in self.source:
                yield chunk

    def __iter__(self) -> Iterator[str]:
        decoder = codecs.getincrementaldecoder(self.encoding)(errors=self.errors)
        for chunk in self._chunks():
            if not chunk:
                continue
            self.bytes_read += len(chunk)
            text = decoder.decode(chunk)
            if text:
                yield text

        # Trailing partial sequence, if any.
        tail = decoder.decode(b"", final=True)
        if tail:
            yield tail


def iter_text(source: ByteSource, encoding: str = "utf-8") -> Iterator[str]:
    """Shortcut for ``iter(StreamReader(source, encoding))``."""
    return iter(StreamReader(source, encoding=encoding))
