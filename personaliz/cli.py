import asyncio

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from personaliz import __version__
from personaliz.config import PERSIST_KEYS, SETTINGS_PATH, get_config, persist_settings
from personaliz.llm.models import Provider
from personaliz.logging import configure_logging

console = Console()

EXIT_WORDS = frozenset({"exit", "quit"})


@click.group(invoke_without_command=True)
@click.version_option(__version__)
@click.pass_context
def main(ctx):
    """personaliz - chat assistant that builds and runs automation agents"""
    ctx.ensure_object(dict)
    try:
        config = get_config()
    except ValueError as e:
        ctx.obj["config_error"] = str(e)
    else:
        ctx.obj["config"] = config
        configure_logging(config.log_level)

    if ctx.invoked_subcommand is None:
        console.print("[bold]personaliz[/bold] - chat assistant that builds and runs automation agents\n")
        console.print("Run [cyan]personaliz chat[/cyan] to start a conversation.")
        console.print("\nUse [cyan]personaliz --help[/cyan] for all commands.")


def _require_config(ctx):
    if "config_error" in ctx.obj:
        console.print(f"[red]Error:[/red] {ctx.obj['config_error']}")
        console.print(f"Fix the value in [cyan]{SETTINGS_PATH}[/cyan] or the PERSONALIZ_* environment.")
        raise SystemExit(1)
    return ctx.obj["config"]


@main.command()
@click.pass_context
def status(ctx):
    """Show the active configuration."""
    config = _require_config(ctx)

    console.print("[bold]personaliz status[/bold]")
    console.print()
    console.print(f"LLM: {config.llm.describe()}")
    console.print(f"Project dir: [cyan]{config.project_dir}[/cyan]")
    console.print(f"OpenClaw dir: [cyan]{config.host_dir}[/cyan]")
    console.print(f"Agents dir: [cyan]{config.resolved_agents_dir}[/cyan]")
    console.print(f"Database: [cyan]{config.db_path}[/cyan]")
    console.print(f"Sandbox: {'on' if config.sandbox else 'off'}")


@main.command()
@click.option("--provider", type=click.Choice([p.value for p in Provider]), help="LLM backend")
@click.option("--model", help="Model name for the selected backend")
@click.option("--endpoint", help="Generate endpoint for the local backend")
@click.option("--api-key", help="API key for the openai or claude backend")
@click.option("--project-dir", type=click.Path(file_okay=False), help="Directory holding the worker scripts")
@click.option("--host-dir", type=click.Path(file_okay=False), help="OpenClaw installation directory")
@click.option("--sandbox/--no-sandbox", default=None, help="Simulate worker starts and host restarts")
@click.pass_context
def settings(ctx, provider, model, endpoint, api_key, project_dir, host_dir, sandbox):
    """Show or update the persisted settings."""
    config = _require_config(ctx)
    updates = {
        "llm_provider": provider,
        "llm_model": model,
        "llm_endpoint": endpoint,
        "llm_api_key": api_key,
        "project_dir": project_dir,
        "host_dir": host_dir,
        "sandbox": sandbox,
    }
    updates = {k: v for k, v in updates.items() if v is not None and k in PERSIST_KEYS}

    if updates:
        try:
            persist_settings(config, **updates)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)
        console.print(f"[green]✅ Settings saved[/green] to [cyan]{SETTINGS_PATH}[/cyan]")

    table = Table(show_header=False, box=None)
    table.add_row("provider", config.llm_provider.value)
    table.add_row("model", config.llm_model)
    table.add_row("endpoint", config.llm_endpoint)
    table.add_row("api key", "set" if config.llm_api_key else "[dim]missing[/dim]")
    table.add_row("project dir", str(config.project_dir))
    table.add_row("host dir", str(config.host_dir))
    table.add_row("sandbox", "on" if config.sandbox else "off")
    console.print(table)


@main.command()
@click.pass_context
def agents(ctx):
    """List the agents stored in the local database."""
    config = _require_config(ctx)
    asyncio.run(_list_agents(config))


async def _list_agents(config):
    from personaliz.runtime import Runtime

    runtime = Runtime(config)
    await runtime.connect()
    try:
        records = await runtime.store.list_agents()
    finally:
        await runtime.close()

    if not records:
        console.print("[dim]No agents yet.[/dim]")
        return

    table = Table("name", "schedule", "command", "active")
    for record in records:
        when = f"{record.schedule} {record.schedule_time or ''}".strip()
        table.add_row(record.name, when, record.command, "yes" if record.is_active else "no")
    console.print(table)


@main.command()
@click.option("--sandbox/--no-sandbox", default=None, help="Override the persisted sandbox setting")
@click.pass_context
def chat(ctx, sandbox):
    """Start an interactive chat session."""
    config = _require_config(ctx)
    if sandbox is not None:
        config.sandbox = sandbox
    asyncio.run(_chat(config))


async def _chat(config):
    from personaliz.runtime import Runtime

    runtime = Runtime(config)
    await runtime.connect()

    console.print(f"[bold]personaliz[/bold] [dim]{runtime.session.llm.describe()}[/dim]")
    if runtime.session.sandbox:
        console.print("[yellow]🔒 Sandbox mode is on[/yellow]")
    console.print("[dim]Type 'exit' to leave.[/dim]\n")

    try:
        while True:
            try:
                text = await asyncio.to_thread(console.input, "[bold cyan]you ›[/bold cyan] ")
            except (EOFError, KeyboardInterrupt):
                break
            if text.strip().lower() in EXIT_WORDS:
                break
            for reply in await runtime.assistant.handle(text):
                console.print(Text.assemble(("assistant › ", "green"), reply))
    finally:
        await runtime.close()


if __name__ == "__main__":
    main()
