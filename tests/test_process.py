# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from hookenv.process import (
    TIMEOUT_RETURNCODE,
    CommandOptions,
    SubprocessExecutionError,
    SubprocessToolRunner,
    ToolRunner,
    run_command,
)


def test_run_command_captures_output(tmp_path: Path) -> None:
    completed = run_command(
        [sys.executable, "-c", "import os; print(os.getcwd())"],
        options=CommandOptions(cwd=tmp_path),
    )

    assert completed.returncode == 0
    assert Path(completed.stdout.strip()).resolve() == tmp_path.resolve()


def test_run_command_raises_with_combined_output() -> None:
    with pytest.raises(SubprocessExecutionError) as excinfo:
        run_command([sys.executable, "-c", "import sys; print('out'); sys.exit('err')"])

    error = excinfo.value
    assert error.returncode == 1
    assert error.output == "out\nerr\n"


def test_run_command_without_check_returns_failure() -> None:
    completed = run_command([sys.executable, "-c", "raise SystemExit(3)"], options=CommandOptions(check=False))

    assert completed.returncode == 3


def test_run_command_rejects_unknown_and_empty_commands() -> None:
    with pytest.raises(FileNotFoundError):
        run_command(["hookenv-no-such-tool"])
    with pytest.raises(ValueError):
        run_command([])


def test_timeout_maps_to_timeout_returncode() -> None:
    completed = run_command(
        [sys.executable, "-c", "import time; time.sleep(5)"],
        options=CommandOptions(timeout=0.2, check=False),
    )

    assert completed.returncode == TIMEOUT_RETURNCODE
    assert "timed out" in completed.stderr


def test_subprocess_tool_runner_satisfies_protocol() -> None:
    runner = SubprocessToolRunner(timeout=30)

    result = runner.run([sys.executable, "-c", "import os; print(os.environ['HOOKENV_PROBE'])"], env={"HOOKENV_PROBE": "1"})

    assert isinstance(runner, ToolRunner)
    assert result.stdout == "1\n"
    assert result.output == "1\n"
    assert runner.which("hookenv-no-such-tool") is None
