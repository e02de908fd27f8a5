"""Tests for the output module."""

from unittest.mock import MagicMock, patch

import pytest

from gps_source_monitor.output import StdoutSink


class TestStdoutSink:
    """Tests for :class:`StdoutSink`."""

    def test_stdout_sink_writes_bytes(self) -> None:
        """StdoutSink writes raw bytes to stdout buffer and counts records."""
        sink = StdoutSink()
        data = b'{"type":"GPS_FAILURE"}\n'

        mock_stdout = MagicMock()
        with patch("gps_source_monitor.output.sys") as mock_sys:
            mock_sys.stdout = mock_stdout
            sink.write(data)
            mock_stdout.buffer.write.assert_called_once_with(data)
            mock_stdout.buffer.flush.assert_called_once()
        assert sink.records_written == 1

    def test_broken_pipe_propagates(self) -> None:
        sink = StdoutSink()
        mock_stdout = MagicMock()
        mock_stdout.buffer.write.side_effect = BrokenPipeError
        with patch("gps_source_monitor.output.sys") as mock_sys:
            mock_sys.stdout = mock_stdout
            with pytest.raises(BrokenPipeError):
                sink.write(b"x\n")
        assert sink.records_written == 0
