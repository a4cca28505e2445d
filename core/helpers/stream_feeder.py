import logging
import shutil
import threading
import zlib
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class StreamFeeder(threading.Thread):
    """Copy ``source`` into a process pipe on a background thread.

    ``sink`` is closed exactly once when the copy finishes or fails so the
    reading process always sees end-of-input. A failure is logged and kept
    on ``error`` for the owner to check after ``join()``.
    """

    def __init__(self, source: BinaryIO, sink: BinaryIO) -> None:
        super().__init__(name="stream-feeder", daemon=True)
        self.source = source
        self.sink = sink
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        try:
            shutil.copyfileobj(self.source, self.sink, CHUNK_SIZE)
        except (OSError, EOFError, zlib.error) as e:
            self.error = e
            logger.error("Stream to subprocess aborted: %s", e)
        finally:
            try:
                self.sink.close()
            except OSError as e:
                # flushing the last buffered chunk into a dead process
                if self.error is None:
                    self.error = e
                    logger.error("Stream to subprocess aborted: %s", e)
