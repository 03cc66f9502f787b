"""
CLI entry point for Gatekeeper.

This module provides the Typer-based command-line interface for Gatekeeper.
It is a thin layer over the policy engine, useful for trying a policy by
hand or calling the gate from a non-Python orchestrator.

Commands:
    check        Validate a command line
    check-path   Check a file path against a project root
    sanitize     Redact secrets from a file or stdin
    show-policy  Show the effective rule lists

Exit codes for check:
    0  allowed
    1  denied (empty, blocked or not on the allowlist)
    2  allowed only after approval
"""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from gatekeeper import __version__
from gatekeeper.errors import GatekeeperError
from gatekeeper.paths import is_path_safe, resolve_path
from gatekeeper.policy import PolicyEngine
from gatekeeper.redact import sanitize_output
from gatekeeper.schema import (
    DEFAULT_SECURITY_CONFIG,
    CommandValidation,
    OperationMode,
    SecurityConfig,
    load_security_config,
)

EXIT_ALLOWED = 0
EXIT_DENIED = 1
EXIT_APPROVAL = 2

app = typer.Typer(
    name="gatekeeper",
    help="Validate agent shell commands, file paths and output against a security policy.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]gatekeeper[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log policy decisions to stderr.",
        ),
    ] = False,
) -> None:
    """
    Gatekeeper - command and resource policy engine for coding agents.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


def _load_engine(
    policy_path: Path | None,
    mode: OperationMode | None,
    json_output: bool,
) -> PolicyEngine:
    """Build the engine from an optional policy file and mode, exiting on errors."""
    try:
        base = load_security_config(policy_path) if policy_path else DEFAULT_SECURITY_CONFIG
        if mode is None:
            return PolicyEngine(base)
        return PolicyEngine.for_mode(mode, base)
    except GatekeeperError as e:
        if json_output:
            _output_json_error(e)
        else:
            console.print(f"[red]Error loading policy:[/red] {escape(str(e))}")
        raise typer.Exit(code=EXIT_DENIED)


def _output_json_error(error: GatekeeperError) -> None:
    """Output an error in JSON format."""
    output = {"error": True, **error.to_dict()}
    print(json.dumps(output, indent=2, default=str))


def _display_validation(command: str, validation: CommandValidation) -> None:
    """Print a validation result."""
    if validation.requires_approval:
        icon = "[yellow]?[/yellow]"
        label = "[yellow]requires approval[/yellow]"
    elif validation.allowed:
        icon = "[green]✓[/green]"
        label = "[green]allowed[/green]"
    else:
        icon = "[red]✗[/red]"
        label = "[red]denied[/red]"

    console.print(f"{icon} [bold]{escape(command)}[/bold]: {label}")
    if validation.reason:
        console.print(f"  [dim]{escape(validation.reason)}[/dim]")


PolicyOption = Annotated[
    Optional[Path],
    typer.Option(
        "--policy",
        "-p",
        help="Path to a policy YAML file. Defaults to the built-in policy.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]

ModeOption = Annotated[
    Optional[OperationMode],
    typer.Option(
        "--mode",
        "-m",
        help="Operation mode whose approval overlay is applied.",
        case_sensitive=False,
    ),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output in JSON format."),
]


@app.command()
def check(
    command: Annotated[str, typer.Argument(help="The command line to validate.")],
    policy_path: PolicyOption = None,
    mode: ModeOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Validate a command line against the policy.

    Example:
        $ gatekeeper check "npm test && git push origin main" --mode discovery
    """
    engine = _load_engine(policy_path, mode, json_output)
    validation = engine.validate(command)

    if json_output:
        output = {"command": command, **validation.model_dump(mode="json")}
        print(json.dumps(output, indent=2))
    else:
        _display_validation(command, validation)

    if validation.requires_approval:
        raise typer.Exit(code=EXIT_APPROVAL)
    raise typer.Exit(code=EXIT_ALLOWED if validation.allowed else EXIT_DENIED)


@app.command("check-path")
def check_path(
    path: Annotated[str, typer.Argument(help="The path the agent wants to access.")],
    root: Annotated[
        str,
        typer.Option("--root", "-r", help="Project root the agent is confined to."),
    ],
    json_output: JsonOption = False,
) -> None:
    """
    Check whether a path stays inside the project root.

    The check is string-only: nothing is read from disk.

    Example:
        $ gatekeeper check-path ../../etc/passwd --root /home/user/project
    """
    safe = is_path_safe(path, root)

    if json_output:
        output = {
            "path": path,
            "project_root": root,
            "resolved": resolve_path(root, path),
            "safe": safe,
        }
        print(json.dumps(output, indent=2))
    elif safe:
        console.print(f"[green]✓[/green] [bold]{escape(path)}[/bold]: safe")
    else:
        console.print(f"[red]✗[/red] [bold]{escape(path)}[/bold]: blocked")

    raise typer.Exit(code=EXIT_ALLOWED if safe else EXIT_DENIED)


@app.command()
def sanitize(
    input_path: Annotated[
        Optional[Path],
        typer.Argument(
            help="File to sanitize. Reads stdin when omitted.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """
    Redact secrets from captured output.

    Example:
        $ npm test 2>&1 | gatekeeper sanitize
    """
    raw = input_path.read_bytes() if input_path else sys.stdin.buffer.read()
    text = raw.decode("utf-8", errors="replace")
    sys.stdout.write(sanitize_output(text))


@app.command("show-policy")
def show_policy(
    policy_path: PolicyOption = None,
    mode: ModeOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Show the effective rule lists.

    Example:
        $ gatekeeper show-policy --mode migration
    """
    engine = _load_engine(policy_path, mode, json_output)
    config: SecurityConfig = engine.config

    if json_output:
        print(json.dumps(config.model_dump(mode="json"), indent=2))
        return

    table = Table(show_header=True, header_style="bold", title="Blocked patterns")
    table.add_column("#", style="dim", width=3)
    table.add_column("Pattern", style="red")
    table.add_column("Kind", width=10)
    for i, pattern in enumerate(engine.compiled_patterns, 1):
        kind = pattern.kind.value
        if pattern.malformed:
            kind = "[yellow]literal*[/yellow]"
        table.add_row(str(i), escape(pattern.text), kind)
    console.print(table)

    table = Table(show_header=True, header_style="bold", title="Require approval")
    table.add_column("#", style="dim", width=3)
    table.add_column("Prefix", style="yellow")
    for i, rule in enumerate(config.require_approval_for, 1):
        table.add_row(str(i), escape(repr(rule)))
    console.print(table)

    table = Table(show_header=True, header_style="bold", title="Allowed commands")
    table.add_column("#", style="dim", width=3)
    table.add_column("Command", style="green")
    for i, rule in enumerate(config.allowed_commands, 1):
        table.add_row(str(i), escape(rule))
    console.print(table)

    if any(p.malformed for p in engine.compiled_patterns):
        console.print("[dim]* invalid regex, matched as literal text[/dim]")


if __name__ == "__main__":
    app()
