"""CLI entry point for lms. Uses Click for argument parsing."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from lms.config import (
    ConfigError,
    get_log_path,
    get_preferences_path,
    load_preferences,
    remember_loaded_model,
    save_preferences,
)
from lms.log import LOG_LEVELS, configure_logging, resolve_log_level

logger = logging.getLogger(__name__)


def _load_preferences_or_fail():
    try:
        return load_preferences()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@click.group(invoke_without_command=True)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS),
    default=None,
    help="The level of logging to use",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
@click.option("--quiet", is_flag=True, help="Suppress all logging")
@click.pass_context
def main(ctx, log_level, verbose, quiet):
    """Operator CLI for a local model server."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = resolve_log_level(log_level, verbose, quiet)
    configure_logging(ctx.obj["log_level"])
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@main.command()
@click.argument("model", required=False)
@click.option(
    "--large-paste-threshold",
    type=click.IntRange(min=1),
    default=None,
    help="Pastes at least this many characters long are shown as one block",
)
@click.option("-p", "--prompt", default=None, help="Send a single prompt and exit")
@click.pass_context
def chat(ctx, model, large_paste_threshold, prompt):
    """Open an interactive chat session."""
    from lms.chat.input_reducer import insert_paste_at_cursor
    from lms.chat.input_rendering import flatten_chat_input
    from lms.chat.input_state import empty_chat_input_state, to_user_message_parts

    prefs = _load_preferences_or_fail()
    threshold = large_paste_threshold or prefs.large_paste_threshold
    if model is not None:
        prefs = remember_loaded_model(prefs, model)
        try:
            save_preferences(prefs)
        except ConfigError as e:
            raise click.ClickException(str(e)) from e

    if prompt is not None:
        state = insert_paste_at_cursor(empty_chat_input_state(), prompt, threshold)
        _echo_submission(model, flatten_chat_input(state).full_text, to_user_message_parts(state))
        return

    if not sys.stdin.isatty():
        # Piped input arrives as one paste
        content = sys.stdin.read()
        if not content.strip():
            raise click.ClickException("No input provided on stdin")
        state = insert_paste_at_cursor(empty_chat_input_state(), content, threshold)
        _echo_submission(model, flatten_chat_input(state).full_text, to_user_message_parts(state))
        return

    # The session owns the terminal, so log records must not reach it
    configure_logging(ctx.obj["log_level"], get_log_path())
    _run_session(prefs, model, threshold)


def _run_session(prefs, model, threshold):
    from lms.chat.session import ChatSession
    from lms.tui.terminal import ProcessTerminal

    # Chunk paste detection keeps its fixed default threshold
    terminal = ProcessTerminal()
    session = ChatSession(terminal, prefs, model=model, large_paste_threshold=threshold)
    asyncio.run(session.run())


def _echo_submission(model, display_text, parts):
    logger.info("Non-interactive prompt with %d part(s)", len(parts))
    click.echo(f"You: {display_text}")
    if model is None:
        click.echo("(no model loaded)")
    else:
        click.echo(f"(sent to {model})")


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


@main.group(invoke_without_command=True)
@click.pass_context
def config(ctx):
    """Show or change CLI preferences."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@config.command("show")
def config_show():
    """Print the current preferences."""
    prefs = _load_preferences_or_fail()
    click.echo(json.dumps(prefs.model_dump(by_alias=True), indent=2))


@config.command("path")
def config_path():
    """Print the preferences file location."""
    click.echo(str(get_preferences_path()))


@config.command("set-threshold")
@click.argument("threshold", type=click.IntRange(min=1))
def config_set_threshold(threshold):
    """Persist the large paste threshold."""
    prefs = _load_preferences_or_fail()
    prefs.large_paste_threshold = threshold
    try:
        save_preferences(prefs)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Large paste threshold set to {threshold} characters")
