import io

import pytest
from loguru import logger

from spirewatch.utils.process import StreamRelay


@pytest.fixture
def messages():
    captured = []
    handler_id = logger.add(captured.append, format="{level}|{message}", level="INFO")
    yield captured
    logger.remove(handler_id)


def lines(captured):
    return [str(message).rstrip("\n") for message in captured]


def test_relay_forwards_each_line(messages):
    relay = StreamRelay(io.StringIO("collected 3 items\n\ntests passed\n"))
    relay.run()
    assert lines(messages) == [
        "INFO|[subprocess] collected 3 items",
        "INFO|[subprocess] ",
        "INFO|[subprocess] tests passed",
        "INFO|Subprocess stream relay finished",
    ]


def test_relay_decodes_binary_streams(messages):
    relay = StreamRelay(io.BytesIO("café\r\n".encode() + b"\xff\n"), prefix="[ctl]")
    relay.run()
    assert lines(messages)[:2] == ["INFO|[ctl] café", "INFO|[ctl] �"]


def test_relay_thread_finishes_at_end_of_stream(messages):
    relay = StreamRelay(io.StringIO("one\ntwo"))
    relay.start()
    assert relay.join(timeout=5) is True
    assert "INFO|[subprocess] two" in lines(messages)


def test_stopped_relay_reads_nothing(messages):
    relay = StreamRelay(io.StringIO("ignored\n"))
    relay.stop()
    relay.run()
    assert relay.stopping is True
    assert lines(messages) == ["INFO|Subprocess stream relay finished"]


class _BrokenStream:
    def readline(self):
        raise OSError("pipe closed")


def test_read_failure_is_logged(messages):
    StreamRelay(_BrokenStream()).run()
    assert lines(messages) == [
        "ERROR|Error reading from subprocess stream: pipe closed",
        "INFO|Subprocess stream relay finished",
    ]


def test_read_failure_after_stop_is_quiet(messages):
    class StopThenFail:
        def __init__(self, relay_ref):
            self.relay_ref = relay_ref

        def readline(self):
            self.relay_ref[0].stop()
            raise ValueError("I/O operation on closed file")

    ref = []
    relay = StreamRelay(StopThenFail(ref))
    ref.append(relay)
    relay.run()
    assert lines(messages) == ["INFO|Subprocess stream relay finished"]


def test_context_manager_starts_and_stops(messages):
    with StreamRelay(io.StringIO("hello\n")) as relay:
        assert relay.join(timeout=5) is True
    assert "INFO|[subprocess] hello" in lines(messages)
