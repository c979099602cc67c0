"""Command line interface for org-grep."""

import logging
import sys
from typing import NoReturn, TextIO, Tuple

import click
from rich.console import Console

from . import __version__
from .config import LOG_LEVELS, PUBLIC_HOST, TRACE, SearchConfig
from .errors import FatalError
from .orchestrator import run_search

logger = logging.getLogger(__name__)

error_console = Console(stderr=True)

# Third-party loggers only shown at trace level
NOISY_LOGGERS = ("httpx", "httpcore", "dulwich", "urllib3")


def configure_logging(level: int) -> None:
    """Send log records to stderr at the requested level."""
    logging.addLevelName(TRACE, "TRACE")
    logging.basicConfig(
        level=level, format="%(levelname)s:%(name)s:%(message)s", stream=sys.stderr
    )
    logging.getLogger().setLevel(level)

    noisy_level = logging.NOTSET if level <= TRACE else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def fail(error: Exception) -> NoReturn:
    """Print a fatal diagnostic and exit with status 1."""
    error_console.print(
        f"❌ {error}", style="red", markup=False, highlight=False, soft_wrap=True
    )
    sys.exit(1)


def output_stream() -> TextIO:
    """Standard output, writing undecodable bytes of matched lines back unchanged."""
    stdout = sys.stdout
    if hasattr(stdout, "reconfigure"):
        stdout.reconfigure(errors="surrogateescape")
    return stdout


@click.command(context_settings={"help_option_names": ["--help"]})
@click.version_option(version=__version__, prog_name="org-grep")
@click.argument("patterns", nargs=-1)
@click.option(
    "--log-level",
    "-v",
    default="info",
    show_default=True,
    help=f"Logging level ({', '.join(LOG_LEVELS)}).",
)
@click.option(
    "--host", "-h", default=PUBLIC_HOST, show_default=True, help="GitHub host to use."
)
@click.option(
    "--organization",
    "-o",
    default="",
    help="Limit search to certain organization (default: your own repositories).",
)
@click.option(
    "--http-timeout",
    default="5s",
    show_default=True,
    help="Timeout for HTTP requests, e.g. 5s, 500ms, 1m30s.",
)
@click.option(
    "--pattern-separator",
    default=" ",
    show_default=True,
    help="String placed between PATTERN arguments when joining them.",
)
@click.option(
    "--delimiter", default=",", show_default=True, help="Output field delimiter."
)
@click.option(
    "--include-binary",
    is_flag=True,
    default=False,
    help="Also search files that contain NUL bytes.",
)
def cli(
    patterns: Tuple[str, ...],
    log_level: str,
    host: str,
    organization: str,
    http_timeout: str,
    pattern_separator: str,
    delimiter: str,
    include_binary: bool,
):
    """Search PATTERN in every repository of a GitHub user or organization.

    \b
    Repositories are shallow-cloned into memory one at a time and every
    matching line is printed as a CSV record:
      repo,file,line                  (pattern without groups)
      repo,file,group1,...,groupN     (pattern with capture groups)

    \b
    Credentials are taken from the hub configuration (~/.config/hub) or
    the GITHUB_TOKEN environment variable.

    \b
    EXAMPLES:
      org-grep -o my-org 'TODO\\(([a-z]+)\\)'
      org-grep -h github.example.com -o platform password
    """
    try:
        config = SearchConfig.from_options(
            patterns=patterns,
            log_level=log_level,
            host=host,
            organization=organization,
            http_timeout=http_timeout,
            pattern_separator=pattern_separator,
            delimiter=delimiter,
            include_binary=include_binary,
        )
    except FatalError as e:
        fail(e)

    configure_logging(config.logging_level)
    logger.debug(f"Configuration: {config!r}")

    stdout = output_stream()
    try:
        run_search(config, stdout)
    except FatalError as e:
        fail(e)
    except KeyboardInterrupt:
        error_console.print("Interrupted", style="yellow")
        sys.exit(130)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
