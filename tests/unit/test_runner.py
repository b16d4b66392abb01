"""Tests for the shell command runner."""

import shutil

import pytest

from gtmigrate.runner import CommandResult, ShellRunner

pytestmark = pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")


@pytest.mark.asyncio
async def test_successful_command_captures_combined_output(tmp_path):
    runner = ShellRunner()
    result = await runner.run("echo out; echo err >&2", str(tmp_path), {})
    assert result.ok
    assert result.exit_code == 0
    assert "out\n" in result.output
    assert "err\n" in result.output


@pytest.mark.asyncio
async def test_runs_in_cwd_with_env(tmp_path):
    runner = ShellRunner()
    result = await runner.run(
        'pwd; echo "$GT_TOWN_ROOT"', str(tmp_path), {"GT_TOWN_ROOT": "/my/town"}
    )
    lines = result.output.splitlines()
    assert lines[0] == str(tmp_path.resolve()) or lines[0] == str(tmp_path)
    assert lines[1] == "/my/town"


@pytest.mark.asyncio
async def test_multiline_script_with_shebang(tmp_path):
    runner = ShellRunner()
    script = "#!/bin/bash\nfor i in 1 2; do\n  echo line$i\ndone"
    result = await runner.run(script, str(tmp_path), {})
    assert result.ok
    assert result.output == "line1\nline2\n"


@pytest.mark.asyncio
async def test_nonzero_exit_is_failure(tmp_path):
    runner = ShellRunner()
    result = await runner.run("echo partial; exit 3", str(tmp_path), {})
    assert not result.ok
    assert result.exit_code == 3
    assert result.error == "exit status 3"
    assert result.output == "partial\n"


@pytest.mark.asyncio
async def test_timeout_is_reported_as_failure(tmp_path):
    runner = ShellRunner(timeout=0.2)
    result = await runner.run("echo begin; sleep 5", str(tmp_path), {})
    assert not result.ok
    assert "timed out" in result.error
    assert "begin" in result.output


@pytest.mark.asyncio
async def test_missing_shell_raises_oserror(tmp_path):
    runner = ShellRunner(shell="/nonexistent/shell")
    with pytest.raises(OSError):
        await runner.run("echo hi", str(tmp_path), {})


def test_command_result_ok_requires_zero_exit_and_no_error():
    assert CommandResult(command="true", exit_code=0).ok
    assert not CommandResult(command="x", exit_code=1).ok
    assert not CommandResult(command="x", exit_code=0, error="timed out").ok
    assert not CommandResult(command="x").ok
