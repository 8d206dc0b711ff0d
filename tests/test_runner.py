"""Tests for ScriptRunner."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from faaah.runner import ScriptRunner, script_command


def make_proc(returncode=0, block: asyncio.Event = None):
    proc = MagicMock()
    proc.returncode = None

    async def wait():
        if block is not None:
            await block.wait()
        proc.returncode = returncode
        return returncode

    proc.wait = wait
    return proc


class TestScriptCommand:
    """Interpreter choice by extension."""

    @pytest.mark.parametrize(
        "name, interpreter",
        [("app.js", ["node"]), ("App.MJS", ["node"]), ("run.sh", ["sh"]), ("main.go", ["go", "run"])],
    )
    def test_known_extensions(self, name, interpreter):
        path = Path("/work") / name
        assert script_command(path) == [*interpreter, str(path)]

    def test_python_uses_current_interpreter(self):
        assert script_command(Path("t.py"))[0] == sys.executable

    def test_unknown_extension(self):
        assert script_command(Path("notes.txt")) is None


class TestScriptRunner:
    """Script processes and failure reporting."""

    @pytest.mark.asyncio
    async def test_failure_reported(self, tmp_path):
        on_failure = MagicMock()
        script = tmp_path / "broken.js"
        spawn = AsyncMock(return_value=make_proc(3))
        runner = ScriptRunner(on_failure, spawn=spawn)

        assert await runner.run(script) == 3

        on_failure.assert_called_once_with(script, 3)
        assert spawn.call_args.args == ("node", str(script))
        assert spawn.call_args.kwargs["cwd"] == str(tmp_path)

    @pytest.mark.asyncio
    async def test_success_not_reported(self, tmp_path):
        on_failure = MagicMock()
        runner = ScriptRunner(on_failure, spawn=AsyncMock(return_value=make_proc(0)))

        assert await runner.run(tmp_path / "ok.py") == 0
        on_failure.assert_not_called()

    @pytest.mark.asyncio
    async def test_unstartable_interpreter(self, tmp_path, caplog):
        on_failure = MagicMock()
        runner = ScriptRunner(on_failure, spawn=AsyncMock(side_effect=FileNotFoundError("node")))

        assert await runner.run(tmp_path / "a.js") is None
        on_failure.assert_not_called()
        assert "Cannot start node" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_extension_not_run(self, tmp_path):
        spawn = AsyncMock()
        runner = ScriptRunner(MagicMock(), spawn=spawn)

        assert runner.run(tmp_path / "notes.txt") is None
        spawn.assert_not_called()

    def test_no_running_loop(self, tmp_path):
        assert ScriptRunner(MagicMock(), spawn=AsyncMock()).run(tmp_path / "a.py") is None

    @pytest.mark.asyncio
    async def test_cancel_all_kills_script(self, tmp_path):
        gate = asyncio.Event()
        proc = make_proc(0, block=gate)
        runner = ScriptRunner(MagicMock(), spawn=AsyncMock(return_value=proc))

        task = runner.run(tmp_path / "slow.py")
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert runner.active_count == 1

        await runner.cancel_all()

        proc.kill.assert_called_once()
        assert task.cancelled()
        assert runner.active_count == 0


@pytest.mark.integration
class TestRealProcess:
    """Run a real interpreter process."""

    @pytest.mark.asyncio
    async def test_real_failing_script(self, tmp_path):
        script = tmp_path / "fails.py"
        script.write_text("import sys\nsys.exit(4)\n")
        on_failure = MagicMock()

        returncode = await ScriptRunner(on_failure).run(script)

        assert returncode == 4
        on_failure.assert_called_once_with(script, 4)

    @pytest.mark.asyncio
    async def test_real_script_runs_in_its_directory(self, tmp_path):
        script = tmp_path / "cwd.py"
        script.write_text("import os, sys\nsys.exit(0 if os.path.exists('cwd.py') else 1)\n")

        assert await ScriptRunner(MagicMock()).run(script) == 0
