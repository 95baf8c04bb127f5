"""Console output helpers."""

from rich.console import Console


console = Console()
stderr_console = Console(stderr=True)


def emit(line: str, print_to_stderr: bool = False):
    """Print a plain line to stdout, or stderr when requested."""
    target = stderr_console if print_to_stderr else console
    target.print(line, markup=False, highlight=False, soft_wrap=True)
