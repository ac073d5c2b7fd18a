# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for theme-mailer.

Useful to check SMTP settings and theme attachments without the host
application.

Usage:
    theme-mailer check-config mailer.ini
    theme-mailer send mailer.ini bob@example.com --subject "Test" --text "Hello" \\
        --theme /opt/themes/corporate/email
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from .attachments import AttachmentResolver, DirectoryTheme
from .config import TransportConfig
from .config_loader import load_transport_config, load_trust_settings
from .errors import ConfigurationError
from .logger import configure_logging
from .provider import EmailSenderProvider, SimpleUser
from .trust import TruststoreProvider

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Execute an async coroutine synchronously from CLI context."""
    return asyncio.run(coro)


def print_error(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def _settings_table(settings: dict[str, Any]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Key")
    table.add_column("Value")
    for key, value in settings.items():
        table.add_row(key, "[dim]-[/dim]" if value is None else str(value))
    return table


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: TM_LOG_LEVEL or INFO).")
def main(log_level: str | None) -> None:
    """Compose and send themed notification emails."""
    configure_logging(log_level)


@main.command("check-config")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--section", default="smtp", show_default=True, help="INI section with SMTP keys.")
def check_config(config_file: Path, section: str) -> None:
    """Validate the SMTP settings in CONFIG_FILE and print them."""
    try:
        settings = TransportConfig.from_mapping(load_transport_config(config_file, section))
    except ConfigurationError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc
    console.print(_settings_table(settings.masked()))
    print_success("Configuration is valid")


@main.command("send")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("recipient")
@click.option("--subject", "-s", required=True, help="Subject line.")
@click.option("--text", "text_body", default=None, help="Plain text body.")
@click.option("--html-file", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="File holding the HTML body.")
@click.option("--theme", "theme_dir", type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=None, help="Theme directory providing attachments.")
@click.option("--section", default="smtp", show_default=True, help="INI section with SMTP keys.")
def send(
    config_file: Path,
    recipient: str,
    subject: str,
    text_body: str | None,
    html_file: Path | None,
    theme_dir: Path | None,
    section: str,
) -> None:
    """Send one message to RECIPIENT using the settings in CONFIG_FILE."""
    html_body = html_file.read_text(encoding="utf-8") if html_file else None
    if text_body is None and html_body is None:
        print_error("Provide --text and/or --html-file")
        raise SystemExit(2)

    theme = DirectoryTheme(theme_dir) if theme_dir else None
    if theme is not None:
        names = AttachmentResolver(theme).manifest()
        console.print(f"Attachments declared by theme: {', '.join(names) or '[dim]none[/dim]'}")

    trust = TruststoreProvider.from_settings(load_trust_settings(config_file))
    provider = EmailSenderProvider(theme=theme, trust_provider=trust)
    result = run_async(
        provider.deliver(
            load_transport_config(config_file, section),
            SimpleUser(recipient),
            subject,
            text_body,
            html_body,
        )
    )
    if not result.ok:
        print_error(f"{result.error} ({result.error_code})")
        raise SystemExit(1)
    print_success(f"Message sent to {recipient}")


__all__ = ["main", "print_error", "print_success", "run_async"]
