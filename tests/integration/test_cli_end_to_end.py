import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest


def _env() -> dict[str, str]:
    return {k: v for k, v in os.environ.items() if not k.startswith("TANDEM_")}


def run_tandem(
    *args: str, cwd: Path, timeout: float = 30
) -> subprocess.CompletedProcess[str]:
    """Run ``python -m tandem`` and capture its output."""
    return subprocess.run(
        [sys.executable, "-m", "tandem", *args],
        cwd=str(cwd),
        env=_env(),
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
    )


class TestEndToEnd:
    def test_echo_two_commands(self, tmp_path: Path) -> None:
        result = run_tandem("--cmd", "echo A", "--cmd", "echo B", cwd=tmp_path)

        assert result.returncode == 0
        out_lines = result.stdout.splitlines()
        assert len(out_lines) == 2
        prefixes = {line.split(" │ ")[1]: line.split(" │ ")[0] for line in out_lines}
        assert set(prefixes) == {"A", "B"}
        assert prefixes["A"] != prefixes["B"]
        assert result.stderr.count("[exited with status 0]") == 2

    def test_exit_status_is_maximum(self, tmp_path: Path) -> None:
        result = run_tandem(
            "--cmd", "exit 0", "--cmd", "exit 3", "--cmd", "exit 1", cwd=tmp_path
        )

        assert result.returncode == 3

    def test_signaled_child_does_not_set_status(self, tmp_path: Path) -> None:
        result = run_tandem("--cmd", "kill -9 $$", "--cmd", "exit 2", cwd=tmp_path)

        assert result.returncode == 2
        assert "[killed by signal SIGKILL]" in result.stderr

    def test_output_is_uncolored_when_piped(self, tmp_path: Path) -> None:
        result = run_tandem("--cmd", "echo plain", cwd=tmp_path)

        assert "\x1b[" not in result.stdout

    def test_missing_cmd_is_a_usage_error(self, tmp_path: Path) -> None:
        result = run_tandem(cwd=tmp_path)

        assert result.returncode != 0

    def test_config_error_exits_2(self, tmp_path: Path) -> None:
        _ = (tmp_path / "tandem.toml").write_text('kill_signal = "NOPE"\n')

        result = run_tandem("--cmd", "true", cwd=tmp_path)

        assert result.returncode == 2
        assert "Error:" in result.stderr

    def test_background_process_does_not_keep_the_run_alive(self, tmp_path: Path) -> None:
        began = time.monotonic()
        result = run_tandem("--cmd", "sleep 5 & echo hi", cwd=tmp_path, timeout=10)

        assert time.monotonic() - began < 4
        assert result.returncode == 0
        assert result.stdout.split(" │ ")[1] == "hi\n"
        assert "[exited with status 0]" in result.stderr


class TestInterrupt:
    @pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
    def test_signal_stops_every_child(self, tmp_path: Path, signum: int) -> None:
        process = subprocess.Popen(
            [
                sys.executable,
                "-m",
                "tandem",
                "--cmd",
                "sleep 100",
                "--cmd",
                "sleep 100",
            ],
            cwd=str(tmp_path),
            env=_env(),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        try:
            assert process.stderr is not None
            started = 0
            while started < 2:
                line = process.stderr.readline()
                assert line, "tandem exited before starting its children"
                if "[started 'sleep 100']" in line:
                    started += 1

            began = time.monotonic()
            process.send_signal(signum)
            _, stderr = process.communicate(timeout=10)
        finally:
            if process.poll() is None:
                process.kill()
                _ = process.wait()

        assert time.monotonic() - began < 10
        assert process.returncode == 0
        assert "received, stopping 2 process(es)]" in stderr
        assert stderr.count("[sending SIGTERM]") == 2
        assert stderr.count("[killed by signal SIGTERM]") == 2
