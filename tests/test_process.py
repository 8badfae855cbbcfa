import asyncio
import sys

import pytest

from ytgate.errors import ProviderUnavailable
from ytgate.providers.process import ProcessStream, run_command

PY = sys.executable


def test_run_command_returns_stdout():
    out = asyncio.run(run_command([PY, "-c", "print('hello')"], timeout=10))
    assert out.strip() == b"hello"


def test_run_command_reports_stderr_on_failure():
    script = "import sys; sys.stderr.write('ERROR: Video unavailable\\n'); sys.exit(1)"
    with pytest.raises(ProviderUnavailable, match="Video unavailable"):
        asyncio.run(run_command([PY, "-c", script], timeout=10))


def test_run_command_times_out():
    with pytest.raises(ProviderUnavailable, match="timed out"):
        asyncio.run(run_command([PY, "-c", "import time; time.sleep(30)"], timeout=0.3))


def test_missing_binary():
    with pytest.raises(ProviderUnavailable, match="not installed"):
        asyncio.run(run_command(["definitely-not-yt-dlp-binary"], timeout=5))


def test_stream_forwards_all_output():
    script = "import sys; sys.stdout.buffer.write(b'abc' * 10000)"

    async def run():
        stream = await ProcessStream([PY, "-c", script], chunk_size=4096).start()
        data = b"".join([chunk async for chunk in stream])
        return stream, data

    stream, data = asyncio.run(run())
    assert data == b"abc" * 10000
    assert stream.closed
    assert stream.process.returncode == 0


def test_stream_failure_before_output():
    script = "import sys; sys.stderr.write('ERROR: Requested format is not available\\n'); sys.exit(1)"

    async def run():
        stream = await ProcessStream([PY, "-c", script]).start()
        try:
            await stream.__anext__()
        finally:
            assert stream.closed

    with pytest.raises(ProviderUnavailable, match="Requested format"):
        asyncio.run(run())


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_aclose_terminates_running_process():
    script = "import sys, time\nwhile True:\n    sys.stdout.write('x' * 1024); sys.stdout.flush(); time.sleep(0.01)\n"

    async def run():
        stream = await ProcessStream([PY, "-c", script], chunk_size=512).start()
        await stream.__anext__()
        assert stream.process.returncode is None
        await asyncio.wait_for(stream.aclose(), timeout=5)
        # Closing twice is harmless
        await stream.aclose()
        return stream.process

    process = asyncio.run(run())
    assert process.returncode is not None
    assert process.returncode != 0
