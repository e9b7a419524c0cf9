from pathlib import Path

import anyio
import anyio.abc
import pytest

from tandem.exceptions import SpawnError
from tandem.supervisor import ChildProcess, Exited, LaunchSpec, Signaled, spawn


async def _read_all(stream: anyio.abc.ByteReceiveStream | None) -> bytes:
    assert stream is not None
    data = bytearray()
    async for chunk in stream:
        data.extend(chunk)
    return bytes(data)


async def _run(child: ChildProcess) -> tuple[bytes, bytes]:
    results: dict[str, bytes] = {}

    async def collect(name: str, stream: anyio.abc.ByteReceiveStream | None) -> None:
        results[name] = await _read_all(stream)

    async with anyio.create_task_group() as tg:
        tg.start_soon(collect, "out", child.stdout)
        tg.start_soon(collect, "err", child.stderr)
    return results["out"], results["err"]


class TestSpawn:
    @pytest.mark.anyio
    async def test_runs_command_through_shell(self) -> None:
        with anyio.fail_after(10):
            async with await spawn(LaunchSpec(0, "echo one && echo two >&2")) as child:
                out, err = await _run(child)
                outcome = await child.wait()

        assert out == b"one\n"
        assert err == b"two\n"
        assert outcome == Exited(0)
        assert child.returncode == 0

    @pytest.mark.anyio
    async def test_reports_exit_code(self) -> None:
        with anyio.fail_after(10):
            async with await spawn(LaunchSpec(0, "exit 3")) as child:
                outcome = await child.wait()

        assert outcome == Exited(3)

    @pytest.mark.anyio
    async def test_wait_does_not_wait_for_background_processes(self) -> None:
        with anyio.fail_after(3):
            async with await spawn(LaunchSpec(0, "sleep 5 & exit 4")) as child:
                try:
                    outcome = await child.wait()
                finally:
                    child.kill()

        assert outcome == Exited(4)

    @pytest.mark.anyio
    async def test_stdin_is_empty(self) -> None:
        with anyio.fail_after(10):
            async with await spawn(LaunchSpec(0, "cat")) as child:
                out, _ = await _run(child)
                outcome = await child.wait()

        assert out == b""
        assert outcome == Exited(0)

    @pytest.mark.anyio
    async def test_uses_working_directory(self, tmp_path: Path) -> None:
        with anyio.fail_after(10):
            async with await spawn(LaunchSpec(0, "pwd -P"), cwd=tmp_path) as child:
                out, _ = await _run(child)

        assert out.decode().strip() == str(tmp_path.resolve())

    @pytest.mark.anyio
    async def test_merges_extra_environment(self) -> None:
        with anyio.fail_after(10):
            async with await spawn(
                LaunchSpec(0, 'echo "$TANDEM_TEST_VALUE"'),
                env={"TANDEM_TEST_VALUE": "xyz"},
            ) as child:
                out, _ = await _run(child)

        assert out == b"xyz\n"

    @pytest.mark.anyio
    async def test_missing_shell_raises_spawn_error(self, tmp_path: Path) -> None:
        missing = tmp_path / "no-such-shell"

        with pytest.raises(SpawnError) as exc_info:
            _ = await spawn(LaunchSpec(4, "echo hi"), shell=str(missing))

        error = exc_info.value
        assert error.command == "echo hi"
        assert error.index == 4
        assert isinstance(error.cause, OSError)


class TestKill:
    @pytest.mark.anyio
    async def test_kill_terminates_with_signal(self) -> None:
        with anyio.fail_after(10):
            async with await spawn(LaunchSpec(0, "sleep 30")) as child:
                child.kill()
                outcome = await child.wait()

        assert outcome == Signaled("SIGTERM")

    @pytest.mark.anyio
    async def test_kill_reaches_grandchildren(self) -> None:
        with anyio.fail_after(10):
            async with await spawn(LaunchSpec(0, "sleep 30 & sleep 30; wait")) as child:
                child.kill()
                _ = await child.wait()
                # The background sleep holds the pipes open until it dies too
                out, _ = await _run(child)

        assert out == b""

    @pytest.mark.anyio
    async def test_kill_after_exit_is_not_an_error(self) -> None:
        with anyio.fail_after(10):
            async with await spawn(LaunchSpec(0, "true")) as child:
                _ = await child.wait()
                child.kill()
