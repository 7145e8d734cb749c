"""CLI commands for ccdiscord."""

import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

import typer
from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ccdiscord import __logo__, __version__

app = typer.Typer(
    name="ccdiscord",
    help=f"{__logo__} ccdiscord - Claude Code in a Discord thread",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} ccdiscord v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", callback=version_callback, is_eager=True),
):
    """ccdiscord - Claude Code in a Discord thread."""
    pass


def _setup_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def _print_sessions(sessions) -> None:
    if not sessions:
        console.print("No resumable sessions found for this directory.")
        return
    table = Table(title="Resumable sessions")
    table.add_column("#", style="cyan")
    table.add_column("Session ID")
    table.add_column("Last modified")
    for index, info in enumerate(sessions, start=1):
        table.add_row(str(index), info.session_id, info.modified.strftime("%Y-%m-%d %H:%M:%S"))
    console.print(table)


def _select_session(sessions) -> str | None:
    _print_sessions(sessions)
    if not sessions:
        return None
    choice = typer.prompt("Select a session number (empty to cancel)", default="", show_default=False)
    if not choice.strip():
        return None
    try:
        index = int(choice)
    except ValueError:
        return None
    if 1 <= index <= len(sessions):
        return sessions[index - 1].session_id
    return None


# ============================================================================
# Run
# ============================================================================


@app.command()
def run(
    continue_session: bool = typer.Option(False, "--continue", "-c", help="Continue from the last session"),
    resume: str = typer.Option(None, "--resume", "-r", help="Resume a specific session by ID"),
    select: bool = typer.Option(False, "--select", "-s", help="Select a session interactively"),
    list_sessions: bool = typer.Option(False, "--list-sessions", help="List all resumable sessions"),
    never_sleep: bool = typer.Option(False, "--never-sleep", help="Auto-execute tasks when idle"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Use the debug actor instead of Claude Code"),
    locale: str = typer.Option(None, "--locale", "-l", help="Language for chat messages (en/ja)"),
    config_path: Path = typer.Option(None, "--config", help="Path to config.json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Start the Discord relay."""
    from ccdiscord.agent import sessions as session_store
    from ccdiscord.config.loader import load_config, validate_config
    from ccdiscord.config.schema import SessionConfig

    _setup_logging(verbose)
    load_dotenv()

    try:
        session = SessionConfig(continue_session=continue_session, resume=resume, select=select)
    except ValidationError as e:
        message = e.errors()[0].get("msg", str(e)).removeprefix("Value error, ")
        console.print(f"[red]Error: {message}[/red]")
        raise typer.Exit(1)

    if list_sessions:
        _print_sessions(session_store.list_sessions())
        raise typer.Exit()

    if session.select:
        chosen = _select_session(session_store.list_sessions())
        if not chosen:
            console.print("No session was selected")
            raise typer.Exit()
        session = SessionConfig(resume=chosen)

    config = load_config(config_path)
    config.session = session
    config.debug = debug or config.debug
    config.never_sleep.enabled = never_sleep or config.never_sleep.enabled
    if locale:
        if locale not in ("en", "ja"):
            console.print(f"[red]Error: unsupported locale '{locale}' (use en or ja)[/red]")
            raise typer.Exit(1)
        config.locale = locale

    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Error: {error}[/red]")
        raise typer.Exit(1)

    try:
        relay, channel = _make_relay(config)
    except RuntimeError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"{__logo__} Starting ccdiscord ({'Debug' if config.debug else 'Production'})")
    console.print(f"  Never Sleep: {'Enabled' if config.never_sleep.enabled else 'Disabled'}")
    if session.resume:
        console.print(f"  Resume Session: {session.resume}")
    elif session.continue_session:
        console.print("  Continue last session")
    else:
        console.print("  New Session")

    try:
        asyncio.run(_serve(relay, channel))
    except KeyboardInterrupt:
        console.print("\nShutting down...")
    except Exception as e:
        console.print(f"[red]Fatal error: {e}[/red]")
        raise typer.Exit(1)


def _make_relay(config):
    """Wire actors, the Discord channel and the relay from config."""
    from ccdiscord.agent.relay import Relay
    from ccdiscord.channels.discord import DiscordChannel
    from ccdiscord.messages import Messages
    from ccdiscord.providers.factory import build_bus, create_assistant

    messages = Messages(config.locale)
    bus = build_bus(config, create_assistant(config))
    intro = messages.session_info(
        start_time=datetime.now().isoformat(timespec="seconds"),
        work_dir=config.agent.cwd or str(Path.cwd()),
        debug=config.debug,
        never_sleep=config.never_sleep.enabled,
        session_id=config.session.resume,
    )
    channel = DiscordChannel(config.discord, intro=intro, goodbye=messages.get("goodbye"))
    return Relay(bus, channel, config, messages), channel


async def _serve(relay, channel) -> None:
    """Run until the channel stops or ``!exit`` is received."""
    await relay.start()
    channel_task = asyncio.create_task(channel.start())
    shutdown_task = asyncio.create_task(relay.shutdown_event.wait())
    try:
        done, _ = await asyncio.wait({channel_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)
        if channel_task in done:
            channel_task.result()
    finally:
        shutdown_task.cancel()
        await channel.stop()
        await relay.stop()
        await asyncio.gather(channel_task, shutdown_task, return_exceptions=True)


# ============================================================================
# Demo
# ============================================================================


@app.command()
def demo(
    never_sleep: bool = typer.Option(False, "--never-sleep", help="Also run an idle-check"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Run a local conversation with the debug actor, without Discord."""
    from ccdiscord.config.schema import Config

    _setup_logging(verbose)
    config = Config(debug=True)
    config.never_sleep.enabled = never_sleep
    asyncio.run(_demo(config))


async def _demo(config) -> None:
    from ccdiscord.actors.user import AUTO_RESPONDER, USER
    from ccdiscord.bus.events import Envelope, MessageType
    from ccdiscord.providers.factory import build_bus

    bus = build_bus(config)
    await bus.start_all()
    try:
        console.print("Debug mode: Running demo conversation...\n")
        user_response = await bus.send(
            Envelope(
                sender="discord",
                recipient=USER,
                type=MessageType.DISCORD_MESSAGE,
                payload={"text": "Hello! How are you?"},
            )
        )
        if user_response is not None:
            console.print(f"UserActor response: {user_response.type} -> {user_response.recipient}")
            reply = await bus.send(user_response)
            if reply is not None:
                console.print(f"Assistant response ({reply.sender}): {reply.text}")

        if config.never_sleep.enabled:
            console.print("\nNever Sleep mode demo...")
            idle = await bus.send(
                Envelope(
                    sender="timer",
                    recipient=AUTO_RESPONDER,
                    type=MessageType.IDLE_CHECK,
                    payload={
                        "last_activity_time": datetime.now() - timedelta(minutes=6),
                        "timeout": 5 * 60,
                    },
                )
            )
            if idle is not None:
                console.print(f"AutoResponder response: {idle.type} {idle.payload}")
    finally:
        await bus.stop_all()


# ============================================================================
# Status
# ============================================================================


@app.command()
def status():
    """Show ccdiscord status."""
    from ccdiscord.agent.sessions import get_project_sessions_dir
    from ccdiscord.config.loader import get_config_path, load_config

    load_dotenv()
    config_path = get_config_path()
    config = load_config()

    def mark(value) -> str:
        return "[green]✓[/green]" if value else "[dim]not set[/dim]"

    console.print(f"{__logo__} ccdiscord Status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Discord token: {mark(config.discord.token)}")
    console.print(f"Channel ID: {config.discord.channel_id or '[dim]not set[/dim]'}")
    console.print(f"User ID: {config.discord.user_id or '[dim]not set[/dim]'}")
    console.print(f"Claude API key: {mark(config.agent.api_key)}")
    console.print(f"Model: {config.agent.model}")
    console.print(f"Permission mode: {config.agent.permission_mode}")
    console.print(f"Mode: {'Debug' if config.debug else 'Production'}")
    console.print(f"Sessions dir: {get_project_sessions_dir()}")


if __name__ == "__main__":
    app()
