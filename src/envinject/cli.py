"""Command-line interface for envinject."""

import os
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path

import click
from colorama import init, Fore, Style
from dotenv import dotenv_values
from rich.panel import Panel
from rich.text import Text

from envinject.config import InjectionConfig
from envinject.core.injector import Injector
from envinject.core.scanner import scan as scan_assets
from envinject.errors import ConfigError, InjectionTimeoutError
from envinject.output.formatters import InjectionFormatter
from envinject.utils.console import (
    _rich_success, _rich_error, _rich_info, _rich_warning, _get_console,
    set_verbosity, QUIET, NORMAL, VERBOSE
)
from envinject.version import get_version

ERROR = f"{Fore.RED}{Style.BRIGHT}"
RESET = Style.RESET_ALL

# Exit codes
EXIT_FILE_ERRORS = 1
EXIT_CONFIG_ERROR = 2
EXIT_TIMEOUT = 3
EXIT_COMMAND_NOT_FOUND = 127


def print_version(ctx, param, value):
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return

    version_text = Text()
    version_text.append("envinject", style="bold cyan")
    version_text.append(f" version {get_version()}", style="white")
    _get_console().print(Panel(version_text, border_style="cyan", padding=(0, 1)))
    ctx.exit()


def _asset_options(func):
    """Options shared by commands that select asset files and tokens."""
    decorators = [
        click.option('--root', '-r', envvar='ENVINJECT_ROOT', default=None,
                     type=click.Path(file_okay=False, path_type=Path),
                     help="Directory of built assets [default: .]"),
        click.option('--prefix', '-p', envvar='ENVINJECT_PREFIX', default=None,
                     help="Environment variable prefix to inject [default: MY_APP_]"),
        click.option('--ext', '-e', 'extensions', envvar='ENVINJECT_EXTENSIONS', multiple=True,
                     help="File extension to rewrite; repeat or comma separate [default: .js,.css]"),
        click.option('--token-format', envvar='ENVINJECT_TOKEN_FORMAT', default=None,
                     help="Placeholder format around the key [default: __{key}__]"),
        click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
                     help="YAML config file [default: ./envinject.yml if present]"),
        click.option('--verbose', '-v', is_flag=True, help="Show per-file details"),
        click.option('--quiet', '-q', is_flag=True, help="Only report errors"),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _split_extensions(extensions):
    """Flatten repeated and comma separated --ext values; None when unset."""
    values = [part for value in extensions for part in value.split(",") if part.strip()]
    return values or None


def _env_flag(environ, name):
    """Read a boolean from the environment, None when unset."""
    value = environ.get(name)
    if not value:
        return None
    try:
        return click.BOOL.convert(value, None, None)
    except click.BadParameter:
        raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _load_environment(env_file):
    """Snapshot the process environment, optionally layered over a dotenv file."""
    environ = {}
    if env_file:
        environ.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    environ.update(os.environ)
    return environ


@contextmanager
def _time_budget(timeout):
    """Interrupt the main thread with InjectionTimeoutError once timeout elapses.

    Needs SIGALRM, so on platforms without it only the injector's own checks
    between files apply.
    """
    if not timeout or not hasattr(signal, "setitimer") \
            or threading.current_thread() is not threading.main_thread():
        yield
        return

    def _expired(signum, frame):
        raise InjectionTimeoutError(timeout)

    previous = signal.signal(signal.SIGALRM, _expired)
    signal.setitimer(signal.ITIMER_REAL, timeout)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


def _exit_now(code):
    """Exit without joining worker threads that may still be blocked on I/O."""
    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(code)


def _configure_output(verbose, quiet):
    if quiet:
        set_verbosity(QUIET)
    elif verbose:
        set_verbosity(VERBOSE)
    else:
        set_verbosity(NORMAL)


@click.group(help="envinject: inject runtime configuration into built static assets")
@click.option('--version', is_flag=True, callback=print_version,
              expose_value=False, is_eager=True, help="Show version and exit.")
@click.pass_context
def cli(ctx):
    """Main entry point for the envinject CLI."""
    ctx.ensure_object(dict)


@cli.command(help="Replace placeholder tokens in assets with environment values",
             context_settings={"allow_interspersed_args": False})
@_asset_options
@click.option('--strict/--no-strict', default=None,
              help="Fail when no variable matches the prefix (env: ENVINJECT_STRICT)")
@click.option('--timeout', envvar='ENVINJECT_TIMEOUT', type=click.FloatRange(min=0, min_open=True),
              default=None, help="Time budget for the whole run, in seconds; the process exits with code 3 when it runs out")
@click.option('--workers', envvar='ENVINJECT_WORKERS', type=click.IntRange(min=1), default=None,
              help="Process files in parallel with this many threads")
@click.option('--dry-run', is_flag=True, help="Report what would change without writing files")
@click.option('--no-collision-check', is_flag=True,
              help="Skip the check that no key is a substring of another")
@click.option('--show-values', is_flag=True, help="Include values in the output (may expose secrets)")
@click.option('--env-file', type=click.Path(exists=True, dir_okay=False),
              help="Dotenv file merged under the process environment")
@click.argument('command', nargs=-1, type=click.UNPROCESSED)
def inject(root, prefix, extensions, token_format, config_path, verbose, quiet,
           strict, timeout, workers, dry_run, no_collision_check, show_values, env_file, command):
    """Run the injection pass, then optionally exec COMMAND.

    Examples:
        envinject inject --root /usr/share/nginx/html
        envinject inject -r dist -e .js -e .css --strict -- nginx -g 'daemon off;'
    """
    _configure_output(verbose, quiet)
    environ = _load_environment(env_file)

    try:
        if strict is None:
            strict = _env_flag(environ, 'ENVINJECT_STRICT')
        config = InjectionConfig.from_yaml(
            config_path,
            root=str(root) if root else None,
            prefix=prefix,
            extensions=_split_extensions(extensions),
            token_format=token_format,
            strict=strict,
            timeout=timeout,
            workers=workers,
            dry_run=dry_run or None,
            check_collisions=False if no_collision_check else None,
            show_values=show_values or None,
        )
        root_dir = Path(config.root or ".")
        if config.dry_run:
            _rich_info("Dry run: no files will be written", symbol="preview")
        with _time_budget(config.timeout):
            result = Injector(config).run(root_dir, environ)
    except ConfigError as e:
        _rich_error(f"Configuration error: {e}", symbol="error")
        sys.exit(EXIT_CONFIG_ERROR)
    except InjectionTimeoutError as e:
        _rich_error(str(e), symbol="error")
        _exit_now(EXIT_TIMEOUT)

    formatter = InjectionFormatter(verbose=verbose)
    if result.outcomes and not quiet:
        table = formatter.file_table(result)
        if table.row_count:
            _get_console().print(table)

    for outcome in result.errors:
        _rich_error(f"Failed to update {outcome.error}", symbol="error")

    if not result.success:
        _rich_error(formatter.summary_line(result), symbol="error")
        sys.exit(EXIT_FILE_ERRORS)

    _rich_success(formatter.summary_line(result), symbol="success")

    if command:
        if config.dry_run:
            _rich_info(f"Dry run: would exec {' '.join(command)}", symbol="preview")
            return
        _exec_command(command)


def _exec_command(command):
    """Replace this process with command; only returns on failure."""
    _rich_info(f"Starting {command[0]}", symbol="running")
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        os.execvp(command[0], list(command))
    except FileNotFoundError:
        _rich_error(f"Command not found: {command[0]}", symbol="error")
        sys.exit(EXIT_COMMAND_NOT_FOUND)
    except OSError as e:
        _rich_error(f"Could not start {command[0]}: {e}", symbol="error")
        sys.exit(EXIT_FILE_ERRORS)


@cli.command(help="List placeholder tokens still present in assets")
@_asset_options
def scan(root, prefix, extensions, token_format, config_path, verbose, quiet):
    """Report unresolved placeholders; exits 1 when any remain."""
    _configure_output(verbose, quiet)

    try:
        config = InjectionConfig.from_yaml(
            config_path,
            root=str(root) if root else None,
            prefix=prefix,
            extensions=_split_extensions(extensions),
            token_format=token_format,
        )
        root_dir = Path(config.root or ".")
        found = scan_assets(root_dir, config)
    except ConfigError as e:
        _rich_error(f"Configuration error: {e}", symbol="error")
        sys.exit(EXIT_CONFIG_ERROR)
    except OSError as e:
        _rich_error(f"Could not read assets: {e}", symbol="error")
        sys.exit(EXIT_FILE_ERRORS)

    if not found:
        _rich_success("No unresolved placeholders found", symbol="check")
        return

    if not quiet:
        _get_console().print(InjectionFormatter(verbose=verbose).scan_table(root_dir, found))
    total = sum(len(tokens) for tokens in found.values())
    _rich_warning(f"{total} unresolved placeholder(s) in {len(found)} file(s)", symbol="warning")
    sys.exit(EXIT_FILE_ERRORS)


def main():
    """Main entry point for the CLI."""
    init(autoreset=True)
    try:
        cli(obj={})
    except Exception as e:
        click.echo(f"{ERROR}Error: {e}{RESET}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
