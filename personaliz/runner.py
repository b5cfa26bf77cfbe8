import asyncio
from pathlib import Path

from personaliz.constants import RESTART_GRACE_SECONDS
from personaliz.errors import DispatchFailure
from personaliz.logging import get_logger
from personaliz.planner.models import Worker

_logger = get_logger(__name__)


class ScriptRunner:
    """Launches the node worker scripts as detached processes."""

    def __init__(self, project_dir: Path, node: str = "node"):
        self.project_dir = project_dir
        self.node = node

    def script_path(self, worker: Worker) -> Path:
        return self.project_dir / worker.value

    async def run(self, worker: Worker, args: list[str]) -> str:
        path = self.script_path(worker)
        if not path.exists():
            raise DispatchFailure(f"Script not found: {worker.value}")

        try:
            proc = await asyncio.create_subprocess_exec(
                self.node,
                str(path),
                *args,
                cwd=self.project_dir,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise DispatchFailure(f"Failed to start script: {e}") from e

        _logger.info("Worker started", worker=worker.value, pid=proc.pid)
        return f"Started {worker.value} in background"


class ProcessControl:
    def __init__(self, host_dir: Path, start_command: str, stop_command: str):
        self.host_dir = host_dir
        self.start_command = start_command
        self.stop_command = stop_command

    async def run_shell_command(self, cmd: str, cwd: Path | None = None) -> str:
        try:
            proc = await asyncio.create_subprocess_shell(
                cmd,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise DispatchFailure(f"Command failed: {e}") from e
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise DispatchFailure(f"Command failed: {stderr.decode(errors='replace').strip()}")
        return stdout.decode(errors="replace").strip()

    async def stop_host(self) -> bool:
        """Best-effort stop; a failing stop command means nothing was running."""
        try:
            await self.run_shell_command(self.stop_command)
        except DispatchFailure:
            _logger.info("No existing host process found")
            return False
        _logger.info("Host process terminated")
        await asyncio.sleep(RESTART_GRACE_SECONDS)
        return True

    async def start_host(self) -> str:
        if not self.host_dir.is_dir():
            raise DispatchFailure(f"OpenClaw not found at {self.host_dir}")
        output = await self.run_shell_command(self.start_command, cwd=self.host_dir)
        _logger.info("Host process started", host_dir=str(self.host_dir))
        return output

    async def restart_host(self) -> None:
        await self.stop_host()
        await self.start_host()


async def dispatch_worker(runner: ScriptRunner, worker: Worker, args: list[str], sandbox: bool) -> str:
    """Start a worker, or only log what would have started when sandboxed. Returns the reply line."""
    if sandbox:
        _logger.info("(simulated) Worker start", worker=worker.value, args=len(args))
        return f"🔒 SANDBOX MODE - Simulated start of {worker.value}"
    result = await runner.run(worker, args)
    return f"✅ {result}"
