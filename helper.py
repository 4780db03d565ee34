import sys

GRAY = "\033[90m"
RED = "\033[31m"
RESET = "\033[0m"


def print_event_gray(text: str) -> None:
    """
    Print event/debug output in gray using ANSI escape codes.
    """
    print(f"{GRAY}{text}{RESET}")


def print_error_red(text: str) -> None:
    """
    Print an error report in red on stderr.
    """
    print(f"{RED}{text}{RESET}", file=sys.stderr)
