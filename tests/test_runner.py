import asyncio
import sys

import pytest

from personaliz import runner as runner_module
from personaliz.errors import DispatchFailure
from personaliz.planner.models import Worker
from personaliz.runner import ProcessControl, ScriptRunner, dispatch_worker

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell commands")


@pytest.fixture(autouse=True)
def no_grace(monkeypatch):
    monkeypatch.setattr(runner_module, "RESTART_GRACE_SECONDS", 0)


class TestScriptRunner:
    @pytest.mark.asyncio
    async def test_missing_script(self, tmp_path):
        runner = ScriptRunner(tmp_path)
        with pytest.raises(DispatchFailure, match="Script not found: linkedin_bot.js"):
            await runner.run(Worker.POSTER, ["hello"])

    @pytest.mark.asyncio
    async def test_starts_detached(self, tmp_path, monkeypatch):
        (tmp_path / "linkedin_hashtag_monitor.js").write_text("")
        calls = []

        class Proc:
            pid = 4242

        async def fake_exec(*args, **kwargs):
            calls.append((args, kwargs))
            return Proc()

        monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)
        result = await ScriptRunner(tmp_path).run(Worker.HASHTAG_MONITOR, ["#AI"])

        assert result == "Started linkedin_hashtag_monitor.js in background"
        ((args, kwargs),) = calls
        assert args == ("node", str(tmp_path / "linkedin_hashtag_monitor.js"), "#AI")
        assert kwargs["cwd"] == tmp_path
        assert kwargs["start_new_session"] is True

    @pytest.mark.asyncio
    async def test_missing_node_binary(self, tmp_path):
        (tmp_path / "linkedin_bot.js").write_text("")
        runner = ScriptRunner(tmp_path, node=str(tmp_path / "no-such-node"))
        with pytest.raises(DispatchFailure, match="Failed to start script"):
            await runner.run(Worker.POSTER, ["hello"])

    @pytest.mark.asyncio
    async def test_dispatch_worker_sandbox(self, tmp_path):
        reply = await dispatch_worker(ScriptRunner(tmp_path), Worker.POSTER, ["hello"], sandbox=True)
        assert reply == "🔒 SANDBOX MODE - Simulated start of linkedin_bot.js"


class TestProcessControl:
    @pytest.mark.asyncio
    async def test_shell_output(self, tmp_path):
        process = ProcessControl(tmp_path, "true", "true")
        assert await process.run_shell_command("echo hello") == "hello"

    @pytest.mark.asyncio
    async def test_shell_failure(self, tmp_path):
        process = ProcessControl(tmp_path, "true", "true")
        with pytest.raises(DispatchFailure, match="Command failed: boom"):
            await process.run_shell_command("echo boom >&2; exit 3")

    @pytest.mark.asyncio
    async def test_stop_is_best_effort(self, tmp_path):
        assert await ProcessControl(tmp_path, "true", "exit 1").stop_host() is False
        assert await ProcessControl(tmp_path, "true", "true").stop_host() is True

    @pytest.mark.asyncio
    async def test_start_requires_host_dir(self, tmp_path):
        process = ProcessControl(tmp_path / "openclaw", "true", "true")
        with pytest.raises(DispatchFailure, match="OpenClaw not found at"):
            await process.start_host()

    @pytest.mark.asyncio
    async def test_start_runs_in_host_dir(self, tmp_path):
        process = ProcessControl(tmp_path, "pwd -P", "true")
        assert await process.start_host() == str(tmp_path.resolve())

    @pytest.mark.asyncio
    async def test_restart_survives_failed_stop(self, tmp_path):
        process = ProcessControl(tmp_path, "echo started", "exit 1")
        await process.restart_host()
