"""Output sink for NDJSON records.

StdoutSink
    Writes raw bytes to ``sys.stdout.buffer``.  Delivery beyond stdout
    (notifications, dashboards) is left to whatever consumes the stream.
"""

from __future__ import annotations

import logging
import sys

logger = logging.getLogger(__name__)


class StdoutSink:
    """Write NDJSON bytes directly to stdout."""

    def __init__(self) -> None:
        self.records_written = 0

    def write(self, data: bytes) -> None:
        """Write *data* to ``sys.stdout.buffer``.

        Raises
        ------
        BrokenPipeError
            If the stdout consumer has gone away.
        """
        try:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
        except BrokenPipeError:
            logger.warning("stdout broken, consumer likely exited")
            raise
        self.records_written += 1

    def close(self) -> None:
        """No-op for stdout."""
