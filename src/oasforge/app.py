"""Typer application and CLI entry point for oasforge.

Commands:

* ``generate`` -- build an OpenAPI document from a route descriptor file.
* ``versions`` -- list the registered exporter versions.
* ``inspect`` -- list the routes in a descriptor file.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~oasforge.exceptions.OasforgeError` failures
exit with their ``exit_code`` after a single error line on stderr; anything
else writes a crash log first.

See Also:
    :mod:`oasforge.config`: Settings precedence.
    :mod:`oasforge.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import tempfile
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from oasforge import __version__
from oasforge.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="oasforge",
    help="Generate OpenAPI 2.0, 3.0 and 3.1 documents from route descriptors.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"oasforge {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool = False) -> None:
    """Route library logging to stderr through Rich.

    ``--verbose`` shows debug records (resolution misses, skipped hidden
    parameters, relocated bodies); otherwise only warnings and above.
    """
    root = logging.getLogger("oasforge")
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output for tables."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the generated document to this file."
    ),
    no_plugins: bool = typer.Option(
        False, "--no-plugins", help="Do not load entry-point plugins."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~oasforge.output.OutputManager` and
    logging from CLI flags and stores shared options in ``ctx.obj``.
    """
    from oasforge.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
        output_file=output_file,
    )
    set_output(output)
    setup_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["no_plugins"] = no_plugins


def _load_plugins(ctx: typer.Context, enabled: bool) -> None:
    from oasforge.output import debug
    from oasforge.plugins import load_plugins

    if not enabled or (ctx.obj or {}).get("no_plugins"):
        debug("Plugin loading disabled")
        return
    for label in load_plugins():
        debug(f"Loaded plugin {label}")


@app.command("generate")
def generate_command(
    ctx: typer.Context,
    routes: str = typer.Argument(..., help="Route descriptor file, URL, or '-' for stdin."),
    spec_version: Optional[str] = typer.Option(
        None, "--spec-version", "-s", help="Exporter version: oas2, oas3 (oas30), oas31."
    ),
    title: Optional[str] = typer.Option(None, "--title", help="API title."),
    api_version: Optional[str] = typer.Option(None, "--api-version", help="API version."),
    doc_format: Optional[str] = typer.Option(
        None, "--format", "-f", help="Document format: json or yaml."
    ),
    indent: Optional[int] = typer.Option(None, "--indent", help="JSON indentation."),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the document to this file."
    ),
) -> None:
    """Generate an OpenAPI document from a route descriptor."""
    from oasforge.config import resolve_config
    from oasforge.generator import Generator
    from oasforge.loader import load_routes
    from oasforge.output import OutputManager, debug, get_output, set_output, success

    config = resolve_config(
        spec_version=spec_version,
        title=title,
        api_version=api_version,
        output_format=doc_format,
        indent=indent,
    )
    _load_plugins(ctx, config.plugins_enabled)

    route_set = load_routes(routes)
    debug(f"Loaded {len(route_set.routes)} routes from {routes}")

    document = Generator().generate_from_config(route_set, config)
    output = get_output()
    if output_file:
        output = OutputManager(
            format=output.format,
            no_color=output.no_color,
            quiet=output.is_quiet,
            verbose=output.is_verbose,
            output_file=output_file,
        )
        set_output(output)
    output.print_document(document, config.output_format, config.indent)
    if output.output_file:
        success(f"Wrote {config.spec_version} document to {output.output_file}")


@app.command("versions")
def versions_command(ctx: typer.Context) -> None:
    """List the registered exporter versions."""
    from oasforge import registries
    from oasforge.output import print_table

    _load_plugins(ctx, True)
    rows = [
        [version, exporter_cls.__name__, getattr(exporter_cls, "version", "")]
        for version, exporter_cls in registries.EXPORTERS.items()
    ]
    print_table(["Version", "Exporter", "Document version"], rows, title="Exporters")


@app.command("inspect")
def inspect_command(
    routes: str = typer.Argument(..., help="Route descriptor file, URL, or '-' for stdin."),
) -> None:
    """List the routes in a descriptor file."""
    from oasforge.loader import load_routes
    from oasforge.output import info, print_table

    route_set = load_routes(routes)
    rows = []
    for route in route_set.routes:
        params = ", ".join(
            name + ("*" if spec.required else "") for name, spec in route.params.items()
        )
        rows.append(
            [
                route.method.upper(),
                route.path,
                params or "-",
                "hidden" if route.hidden else "",
            ]
        )
    print_table(["Method", "Path", "Params", "Flags"], rows, title=route_set.info.title)
    info(f"{len(rows)} routes")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to the temp directory and return its path."""
    logs_dir = Path(tempfile.gettempdir()) / "oasforge"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(exc)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``oasforge`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app(standalone_mode=True)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from oasforge.exceptions import ExporterNotFoundError, OasforgeError
        from oasforge.output import error, suggest

        if isinstance(exc, OasforgeError):
            error(str(exc))
            if isinstance(exc, ExporterNotFoundError):
                suggest("Run 'oasforge versions' to list registered exporters")
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
