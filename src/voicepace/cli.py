#!/usr/bin/env python3

import rich_click as click

# Configure rich-click to enable markup - MUST be first!
click.rich_click.USE_RICH_MARKUP = True

click.rich_click.STYLE_OPTION = "#ff79c6"
click.rich_click.STYLE_ARGUMENT = "#8be9fd"
click.rich_click.STYLE_COMMAND = "#50fa7b"
click.rich_click.STYLE_USAGE = "#bd93f9"
click.rich_click.STYLE_HELPTEXT = "#b3b8c0"

"""
VoicePace - live dictation with speaking-rate feedback
"""

import asyncio
import contextlib
import json
import signal
import sys
from types import SimpleNamespace

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from . import __version__
from .core.logging import configure_logging

RATE_STYLES = {
    "not started": "dim",
    "slow": "cyan",
    "moderate": "green",
    "fast": "yellow",
    "very fast": "red",
}


@click.group()
@click.version_option(version=__version__, prog_name="VoicePace")
@click.option("--config", "config_path", help=" ⚙️  Configuration file path")
@click.option("--debug", is_flag=True, help=" 🐛 Enable detailed debug logging")
@click.option("--dynamic-correction", is_flag=True, help=" ✏️  Ask the service to revise partial results (wpgs)")
@click.option("--json", "as_json", is_flag=True, help=" 📄 Print the final result as JSON")
@click.pass_context
def main(ctx, config_path, debug, dynamic_correction, as_json):
    """🎙️ [bold cyan]VoicePace[/bold cyan] - Streaming dictation with live speaking-rate analytics

    \b
    [bold yellow]🎯 Quick Start:[/bold yellow]
    \b
      [green]voicepace listen[/green]                      [italic]# Dictate for up to 60 seconds[/italic]
      [green]voicepace listen --duration 30[/green]        [italic]# Shorter session[/italic]
      [green]voicepace file speech.wav[/green]             [italic]# Recognize a 16 kHz WAV or PCM file[/italic]
      [green]voicepace --json file speech.pcm[/green]      [italic]# Machine-readable result[/italic]

    \b
    [bold yellow]🔑 Setup:[/bold yellow]
    \b
      Put credentials under [bold]\\[voicepace.credentials][/bold] in ~/.voicepace/config.toml
      or export VOICEPACE_APP_ID, VOICEPACE_API_KEY and VOICEPACE_API_SECRET.
    """
    if debug:
        configure_logging("DEBUG", console=True)
    ctx.obj = SimpleNamespace(
        config_path=config_path,
        debug=debug,
        dynamic_correction=dynamic_correction,
        as_json=as_json,
    )


@main.command()
@click.option("--duration", type=float, help=" ⏱️  Maximum session length in seconds")
@click.option("--device", type=int, help=" 🎤 PortAudio input device index")
@click.pass_obj
def listen(args, duration, device):
    """🎤 Dictate from the microphone; press Ctrl+C to finish."""
    args.source = None
    args.duration = duration
    args.device = device
    _run(args)


@main.command("file")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def file_command(args, path):
    """📁 Recognize a raw PCM (.pcm/.raw) or 16-bit WAV file."""
    args.source = path
    args.duration = None
    args.device = None
    _run(args)


def _run(args) -> None:
    console = Console(stderr=True)
    try:
        exit_code = asyncio.run(run_session(args, console))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        exit_code = 130
    sys.exit(exit_code)


def render(text: str, engine, progress: float | None = None) -> Panel:
    """Live panel: transcript body, current rate and classification in the title."""
    label = engine.classification
    title = Text.assemble(
        ("🗣  ", ""),
        (f"{engine.current_rate}/min ", "bold"),
        (label, RATE_STYLES.get(label, "white")),
    )
    subtitle = f"{engine.word_count} chars · avg {engine.average_rate}/min"
    if progress is not None:
        subtitle += f" · {progress:.0%}"
    return Panel(Text(text or "…"), title=title, subtitle=subtitle, border_style="cyan")


async def run_session(args, console: Console) -> int:
    """Run one recognition lifecycle and render it; returns the exit code."""
    from .analytics import RateAnalyticsEngine
    from .audio.capture import PyAudioCapture
    from .core.config import ConfigLoader, get_config
    from .exceptions import RecognitionError
    from .recognition.config import SessionSettings
    from .recognition.registry import create_service

    try:
        config = ConfigLoader(args.config_path) if args.config_path else get_config()
        settings = SessionSettings.from_config(config)
        if args.dynamic_correction:
            settings.dynamic_correction = True
        if args.duration:
            settings.max_duration_s = args.duration

        engine = RateAnalyticsEngine.from_config(config)
        capture = PyAudioCapture(device_index=args.device) if args.source is None else None
        session = create_service(
            config.vendor,
            credentials=config.credentials,
            capture=capture,
            settings=settings,
            observers=[engine],
        )
    except RecognitionError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        return 2

    state = SimpleNamespace(text="", progress=None, finished=False)

    with Live(render("", engine), console=console, refresh_per_second=10, transient=args.as_json) as live:

        def on_result(result):
            state.text = result.text
            state.finished = state.finished or result.is_finished
            live.update(render(state.text, engine, state.progress))

        def on_progress(fraction):
            state.progress = fraction
            live.update(render(state.text, engine, state.progress))

        def on_error(error):
            console.print(f"[red]Error ({error.kind}): {escape(error.message)}[/red]")

        def on_start():
            if args.source is None:
                console.print("[green]Listening… press Ctrl+C to finish[/green]")

        try:
            if args.source is None:
                session.start(on_result=on_result, on_error=on_error, on_start=on_start)
                loop = asyncio.get_running_loop()
                with contextlib.suppress(NotImplementedError):
                    loop.add_signal_handler(signal.SIGINT, session.finish)
            else:
                session.recognize_file(
                    args.source, on_result=on_result, on_error=on_error, on_progress=on_progress
                )
        except RecognitionError as e:
            console.print(f"[red]Error: {escape(e.message)}[/red]")
            return 2

        try:
            await session.wait_closed()
        finally:
            if args.source is None:
                with contextlib.suppress(NotImplementedError):
                    asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
            session.dispose()

        live.update(render(state.text, engine, state.progress))

    summary = engine.last_summary
    if args.as_json:
        payload = {"text": state.text, "is_finished": state.finished}
        if summary is not None:
            payload.update(
                word_count=summary.final_word_count,
                average_rate=summary.final_average_rate,
                duration_ms=round(summary.duration_ms),
                classification=summary.classification,
            )
        if session.last_error is not None:
            payload["error"] = session.last_error.to_dict()
        click.echo(json.dumps(payload, ensure_ascii=False))
    elif summary is not None:
        console.print(
            f"[bold]{summary.final_word_count}[/bold] chars in {summary.duration_ms / 1000:.1f}s · "
            f"average [bold]{summary.final_average_rate}/min[/bold] ({summary.classification})"
        )

    return 1 if session.last_error is not None else 0


if __name__ == "__main__":
    main()
