"""Command line interface for SQLAViz."""

import sys
from logging import DEBUG, basicConfig
from pathlib import Path

from cyclopts import App
from cyclopts.config import Env
from driver import (
    ConnectionTarget,
    Deadline,
    DeadlineExceededError,
    InvalidURLError,
    OperationCancelledError,
    UnsupportedSchemeError,
    parse_dev_url,
)
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from schema import ExtractionError, HCLOptions, generate_hcl
from share import (
    DEFAULT_ENDPOINT,
    DEFAULT_TIMEOUT,
    ShareConfig,
    ShareError,
    share_hcl,
)

app = App(
    help="Share a visualization of SQLAlchemy models",
    config=Env("SQLAVIZ_", command=False),
)

DEFAULT_DEV_URL = "sqlite3://file?mode=memory&cache=shared&_fk=1"

FAILURES = (ExtractionError, ShareError, OperationCancelledError, DeadlineExceededError)

err_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {escape(message)}", highlight=False)


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def configure_logging(*, verbose: bool) -> None:
    """Send debug logs to stderr when verbose."""
    if verbose:
        basicConfig(
            level=DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


def error_chain(err: BaseException) -> str:
    """Join an error with the causes its message does not already include."""
    message = str(err)
    cause = err.__cause__
    while cause is not None:
        if str(cause) not in message:
            message = f"{message}: {cause}"
        cause = cause.__cause__
    return message


def resolve_dev_url(dev_url: str) -> ConnectionTarget:
    """Resolve the dev database URL, exiting on an invalid one."""
    try:
        return parse_dev_url(dev_url)
    except (InvalidURLError, UnsupportedSchemeError) as e:
        print_error(f"invalid dev-url: {e}")
        sys.exit(1)


def validate_schema_path(schema_path: Path) -> None:
    """Validate the models location."""
    if not schema_path.exists():
        print_error(f"Schema path does not exist: {schema_path}")
        sys.exit(1)


@app.default
def visualize(
    schema_path: Path,
    *,
    dev_url: str = DEFAULT_DEV_URL,
    global_unique_id: bool = False,
    endpoint: str = DEFAULT_ENDPOINT,
    timeout: float = DEFAULT_TIMEOUT,
    verbose: bool = False,
) -> None:
    """Share a visualization of the models at SCHEMA_PATH.

    Args:
        schema_path: Python file or package defining SQLAlchemy models.
        dev_url: Dev database used to resolve the schema.
        global_unique_id: Give every table its own range of primary keys.
        endpoint: GraphQL endpoint of the visualization service.
        timeout: Seconds allowed to each request to the service.
        verbose: Log every stage to stderr.

    """
    configure_logging(verbose=verbose)
    validate_schema_path(schema_path)
    target = resolve_dev_url(dev_url)
    print_info(f"Dev database: {target.dialect}")

    deadline = Deadline()
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=err_console,
        ) as progress:
            task = progress.add_task("Generating schema document...", total=None)
            document = generate_hcl(
                HCLOptions(schema_path, target.dialect, dev_url, global_unique_id),
                deadline=deadline,
            )
            progress.update(task, description="Sharing visualization...")
            link = share_hcl(
                document,
                target.driver_tag,
                ShareConfig(endpoint=endpoint, timeout=timeout),
                deadline=deadline,
            )
    except FAILURES as e:
        print_error(error_chain(e))
        sys.exit(1)
    except KeyboardInterrupt:
        print_error("Interrupted by user")
        sys.exit(1)

    print_success("Here is a public link to your schema visualization")
    sys.stdout.write(f"{link}\n")


@app.command
def hcl(
    schema_path: Path,
    *,
    dev_url: str = DEFAULT_DEV_URL,
    global_unique_id: bool = False,
    verbose: bool = False,
) -> None:
    """Print the schema document of the models at SCHEMA_PATH.

    Args:
        schema_path: Python file or package defining SQLAlchemy models.
        dev_url: Dev database used to resolve the schema.
        global_unique_id: Give every table its own range of primary keys.
        verbose: Log every stage to stderr.

    """
    configure_logging(verbose=verbose)
    validate_schema_path(schema_path)
    target = resolve_dev_url(dev_url)

    try:
        document = generate_hcl(
            HCLOptions(schema_path, target.dialect, dev_url, global_unique_id),
        )
    except FAILURES as e:
        print_error(error_chain(e))
        sys.exit(1)
    except KeyboardInterrupt:
        print_error("Interrupted by user")
        sys.exit(1)

    sys.stdout.write(document.decode())


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
