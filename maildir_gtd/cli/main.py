"""Command-line interface for the GTD Maildir engine."""

import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from maildir_gtd.core.config import Config
from maildir_gtd.core.exceptions import ConfigurationError, GTDMaildirError
from maildir_gtd.core.mcp_logger import configure_mcp_logging
from maildir_gtd.models.message import GTDMetadata, MessageListItem
from maildir_gtd.models.workflow import Clarification
from maildir_gtd.services.factory import GTDServices, build_services

app = typer.Typer(help="GTD Maildir - Getting Things Done over Maildir mailboxes")
console = Console()

WorkspaceOption = typer.Option(None, "--workspace", "-w", help="Workspace root folder")
ConfigPathOption = typer.Option(None, "--config-path", "-c", help="Path to configuration file")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Show debug logging")


def _workspace_override(workspace: Optional[str]) -> Optional[dict]:
    return {"storage": {"workspace_root": workspace}} if workspace else None


def _load_config(workspace: Optional[str], config_path: Optional[str], verbose: bool = False) -> Config:
    try:
        config = Config.load_from_yaml(config_path, overrides=_workspace_override(workspace))
    except (ConfigurationError, ValueError) as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    configure_mcp_logging("DEBUG" if verbose else "WARNING", config.logging.format)
    return config


def _services(workspace: Optional[str], config_path: Optional[str], verbose: bool) -> GTDServices:
    return build_services(_load_config(workspace, config_path, verbose))


def _run(coro):
    """Run a command coroutine, turning domain errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except GTDMaildirError as e:
        console.print(f"[red]❌ {escape(e.message)}[/red]")
        if e.details:
            for key, value in e.details.items():
                console.print(f"   [dim]{key}: {escape(str(value))}[/dim]")
        raise typer.Exit(1)


def _message_table(title: str, items: List[MessageListItem]) -> Table:
    table = Table(title=title)
    table.add_column("Filename", style="cyan", no_wrap=True)
    table.add_column("From", style="yellow")
    table.add_column("Subject", style="white")
    table.add_column("Date", style="green")
    table.add_column("Flags", style="magenta")
    table.add_column("Priority", style="red")

    for item in items:
        table.add_row(
            escape(item.filename),
            escape(item.from_),
            escape(item.subject),
            item.date.strftime("%Y-%m-%d %H:%M"),
            item.flags.to_letters(),
            escape(item.gtd.priority or ""),
        )
    return table


@app.command()
def mailboxes(
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    verbose: bool = VerboseOption,
):
    """List team member mailboxes."""
    services = _services(workspace, config_path, verbose)
    discovery = _run(services.maildir.discover_mailboxes())

    table = Table(title="Mailboxes")
    table.add_column("Address", style="cyan", no_wrap=True)
    table.add_column("Type", style="yellow")
    table.add_column("Category", style="green")

    for mailbox in discovery.mailboxes:
        table.add_row(
            escape(mailbox.address) + (" 🤖" if mailbox.is_ai_agent else ""),
            mailbox.category.value,
            mailbox.subcategory.value if mailbox.subcategory else "",
        )
    console.print(table)

    for diagnostic in discovery.diagnostics:
        console.print(f"[yellow]⚠️  {escape(diagnostic)}[/yellow]")


@app.command()
def inbox(
    address: str = typer.Argument(..., help="Mailbox address"),
    limit: int = typer.Option(10, "--limit", "-l", help="Maximum number of messages"),
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    verbose: bool = VerboseOption,
):
    """Show messages waiting in a mailbox's inbox (new/)."""
    services = _services(workspace, config_path, verbose)
    items = _run(services.maildir.get_inbox(address, limit))

    if not items:
        console.print(f"[green]✅ Inbox zero for {escape(address)}[/green]")
        return
    console.print(_message_table(f"Inbox: {escape(address)}", items))


@app.command()
def folder(
    address: str = typer.Argument(..., help="Mailbox address"),
    name: str = typer.Argument(..., help="Folder (new, cur, Next-Actions, Waiting-For, Projects, Someday-Maybe, Reference)"),
    limit: int = typer.Option(50, "--limit", "-l", help="Maximum number of messages"),
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    verbose: bool = VerboseOption,
):
    """Show messages in a GTD folder."""
    services = _services(workspace, config_path, verbose)
    items = _run(services.maildir.get_folder(address, name, limit))

    if not items:
        console.print(f"[dim]No messages in {escape(name)} for {escape(address)}[/dim]")
        return
    console.print(_message_table(f"{escape(name)}: {escape(address)}", items))


@app.command()
def read(
    address: str = typer.Argument(..., help="Mailbox address"),
    filename: str = typer.Argument(..., help="Message filename"),
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    verbose: bool = VerboseOption,
):
    """Read a message from any folder of a mailbox."""
    services = _services(workspace, config_path, verbose)
    message = _run(services.maildir.read_message(address, filename))

    if message is None:
        console.print(f"[red]❌ Message not found: {escape(filename)}[/red]")
        raise typer.Exit(1)

    header = (
        f"[bold]From:[/bold] {escape(str(message.from_))}\n"
        f"[bold]To:[/bold] {escape(', '.join(str(addr) for addr in message.to))}\n"
        f"[bold]Date:[/bold] {message.date.isoformat()}\n"
    )
    gtd = message.gtd.to_dict()
    if gtd:
        header += "[bold]GTD:[/bold] " + escape(", ".join(f"{k}={v}" for k, v in gtd.items())) + "\n"
    if message.attachments:
        header += "[bold]Attachments:[/bold] " + escape(", ".join(a.filename for a in message.attachments)) + "\n"

    console.print(Panel(
        header + "\n" + (escape(message.text) if message.text else "[dim](no text body)[/dim]"),
        title=f"📧 {escape(message.subject)}",
        border_style="blue"
    ))


@app.command()
def send(
    from_address: str = typer.Option(..., "--from", help="Sender address"),
    to_address: str = typer.Option(..., "--to", help="Recipient mailbox address"),
    subject: str = typer.Option(..., "--subject", "-s", help="Subject"),
    body: str = typer.Option(..., "--body", "-b", help="Plain-text body"),
    project: Optional[str] = typer.Option(None, "--project", help="GTD project"),
    context: Optional[str] = typer.Option(None, "--context", help="GTD context (e.g. @computer)"),
    priority: Optional[str] = typer.Option(None, "--priority", help="GTD priority (high, medium, low)"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", help="GTD tag (repeatable)"),
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    verbose: bool = VerboseOption,
):
    """Drop a new message into a mailbox's inbox."""
    services = _services(workspace, config_path, verbose)
    gtd = GTDMetadata(project=project, context=context, priority=priority, tags=tags or None)
    result = _run(services.maildir.send_message(from_address, to_address, subject, body, gtd=gtd))

    console.print(f"[green]✅ Delivered to {escape(to_address)}[/green]")
    console.print(f"   [dim]{escape(result.path)}[/dim]")


@app.command()
def clarify(
    address: str = typer.Argument(..., help="Mailbox address"),
    filename: str = typer.Argument(..., help="Message filename"),
    what_is_it: str = typer.Option(..., "--what", help="What is it?"),
    actionable: bool = typer.Option(False, "--actionable/--not-actionable", help="Is it actionable?"),
    outcome: str = typer.Option(..., "--outcome", "-o", help="next_action, project, waiting_for, reference, someday_maybe or trash"),
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    verbose: bool = VerboseOption,
):
    """Record the GTD clarification for an inbox item."""
    try:
        answers = Clarification(what_is_it=what_is_it, is_actionable=actionable, outcome=outcome)
    except ValueError as e:
        console.print(f"[red]❌ Invalid clarification: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    services = _services(workspace, config_path, verbose)
    message = _run(services.maildir.read_message(address, filename))
    if message is None:
        console.print(f"[red]❌ Message not found: {escape(filename)}[/red]")
        raise typer.Exit(1)

    decision = services.workflow.clarify(answers)
    target = decision.target_folder
    console.print(Panel(
        f"[bold]Subject:[/bold] {escape(message.subject)}\n"
        f"[bold]Outcome:[/bold] {answers.outcome.value}\n"
        f"[bold]Recommended:[/bold] {decision.recommended_action}\n"
        f"[bold]Target folder:[/bold] {target.value if target else '(delete)'}",
        title="🧭 Clarified",
        border_style="green"
    ))


@app.command()
def organize(
    address: str = typer.Argument(..., help="Mailbox address"),
    filename: str = typer.Argument(..., help="Message filename"),
    target: str = typer.Argument("Reference", help="Target GTD folder"),
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    verbose: bool = VerboseOption,
):
    """Move an item from new/ or cur/ into a GTD folder."""
    services = _services(workspace, config_path, verbose)
    result = _run(services.maildir.move_to_folder(address, filename, target))

    if not result.success:
        console.print(f"[red]❌ {escape(result.message)}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ {escape(result.message)}[/green]")


@app.command()
def scan(
    subfolder: str = typer.Argument(..., help="Workspace folder holding work items"),
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    verbose: bool = VerboseOption,
):
    """Classify work-item files in a workspace folder."""
    services = _services(workspace, config_path, verbose)
    items = _run(services.maildir.scan_work_items(subfolder))

    table = Table(title=f"Work items: {escape(subfolder)}")
    table.add_column("Item", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Priority", style="red")
    table.add_column("Modified", style="green")
    table.add_column("Size", style="dim", justify="right")

    for item in items:
        table.add_row(
            escape(item.id),
            item.status.value,
            item.priority.value,
            item.modified.strftime("%Y-%m-%d %H:%M"),
            str(item.size),
        )
    console.print(table)


@app.command()
def serve(
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    transport: Optional[str] = typer.Option(None, "--transport", "-t", help="stdio, sse or streamable-http"),
):
    """Run the MCP server."""
    from maildir_gtd.mcp_server import create_server

    config = Config.load_from_yaml(config_path, overrides=_workspace_override(workspace))
    configure_mcp_logging(config.logging.level, config.logging.format)

    server = create_server(build_services(config))
    server.run(transport=transport or config.mcp.transport)


@app.command()
def config(
    workspace: Optional[str] = WorkspaceOption,
    config_path: Optional[str] = ConfigPathOption,
    validate: bool = typer.Option(False, "--validate", help="Validate configuration"),
    show: bool = typer.Option(False, "--show", "-s", help="Show current configuration"),
):
    """Show or validate configuration."""
    config_obj = _load_config(workspace, config_path)

    if validate:
        report = config_obj.validate_startup_requirements()
        for check in report["checks"]:
            console.print(f"  {escape(check)}")
        for warning in report["warnings"]:
            console.print(f"  [yellow]{escape(warning)}[/yellow]")
        for error in report["errors"]:
            console.print(f"  [red]{escape(error)}[/red]")
        if report["status"] == "error":
            console.print("[red]Configuration validation failed[/red]")
            raise typer.Exit(1)
        console.print("[green]✅ Configuration is valid[/green]")

    if show:
        table = Table(title="Current Configuration")
        table.add_column("Section", style="cyan")
        table.add_column("Key", style="yellow")
        table.add_column("Value", style="green")

        for section, values in config_obj.to_dict().items():
            for key, value in values.items():
                table.add_row(section, key, escape(str(value)))

        console.print(table)

    if not validate and not show:
        console.print("[green]Configuration loaded successfully[/green]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
