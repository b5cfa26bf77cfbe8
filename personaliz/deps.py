import asyncio
import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path

from personaliz.logging import get_logger

_logger = get_logger(__name__)

PROBE_TIMEOUT = 10.0


@dataclass(frozen=True)
class DependencyReport:
    os: str
    node: str | None
    npm: str | None
    playwright: bool
    ollama: bool
    openclaw: bool

    @property
    def issues(self) -> list[str]:
        issues = []
        if not self.node:
            issues.append("Install Node.js from nodejs.org")
        if not self.npm:
            issues.append("npm should come with Node.js")
        if not self.playwright:
            issues.append("Run: npx playwright install chromium")
        if not self.ollama:
            issues.append("Install Ollama from ollama.ai and run: ollama serve")
        if not self.openclaw:
            issues.append("Run: setup openclaw")
        return issues

    def render(self) -> list[str]:
        lines = [
            "📋 System Status:",
            f"  • OS: {self.os}",
            f"  • Node.js: {'✅ ' + self.node if self.node else '❌ Not found'}",
            f"  • npm: {'✅ ' + self.npm if self.npm else '❌ Not found'}",
            f"  • Playwright: {'✅ Installed' if self.playwright else '❌ Not installed'}",
            f"  • Ollama: {'✅ Running' if self.ollama else '❌ Not running'}",
            f"  • OpenClaw: {'✅ Found' if self.openclaw else '❌ Not found'}",
            "",
        ]
        if issues := self.issues:
            lines.append("💡 Setup Required:")
            lines.extend(f"  • {issue}" for issue in issues)
        else:
            lines.append("✅ All dependencies are ready!")
        return lines


def playwright_cache_dir() -> Path:
    if custom := os.environ.get("PLAYWRIGHT_BROWSERS_PATH"):
        return Path(custom)
    home = Path.home()
    if sys.platform == "win32":
        return home / "AppData" / "Local" / "ms-playwright"
    if sys.platform == "darwin":
        return home / "Library" / "Caches" / "ms-playwright"
    return home / ".cache" / "ms-playwright"


async def command_output(*cmd: str) -> str | None:
    """stdout of a successful command, None when it is missing or fails."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError:
        return None
    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=PROBE_TIMEOUT)
    except TimeoutError:
        proc.kill()
        await proc.wait()
        _logger.warning("Dependency probe timed out", command=cmd[0])
        return None
    if proc.returncode != 0:
        return None
    return stdout.decode(errors="replace").strip()


async def check_dependencies(host_dir: Path) -> DependencyReport:
    node, npm, ollama = await asyncio.gather(
        command_output("node", "--version"),
        command_output("npm", "--version"),
        command_output("ollama", "list"),
    )
    report = DependencyReport(
        os=platform.system().lower() or sys.platform,
        node=node or None,
        npm=npm or None,
        playwright=playwright_cache_dir().exists(),
        ollama=ollama is not None,
        openclaw=host_dir.is_dir(),
    )
    _logger.info("Dependency check", os=report.os, missing=len(report.issues))
    return report
