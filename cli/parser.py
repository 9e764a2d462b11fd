"""Command parser for CLI arguments."""

from typing import Optional

from cli.models import CheckCommand, CommandRequest, HelpCommand, UploadCommand


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(args: list[str]) -> CommandRequest:
    """Parse command-line arguments into a CommandRequest object.

    Args:
        args: Arguments after the program name

    Returns:
        CommandRequest object (one of Upload/Check/Help)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not args:
        raise ParseError("Empty command")

    command_name = args[0]

    if command_name == "upload":
        return _parse_upload(args[1:])
    elif command_name == "check":
        return _parse_check(args[1:])
    elif command_name in ("help", "--help", "-h"):
        return HelpCommand()
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [options]' command."""
    path: Optional[str] = None
    parallelism = None
    retries = None
    deferred = None
    cache = None

    tokens = iter(args)
    for arg in tokens:
        if arg == "--parallelism":
            parallelism = _parse_positive_int(arg, next(tokens, None))
        elif arg == "--retries":
            retries = _parse_positive_int(arg, next(tokens, None))
        elif arg == "--no-deferred":
            deferred = False
        elif arg == "--deferred":
            deferred = True
        elif arg == "--cache":
            cache = True
        elif arg.startswith("--"):
            raise ParseError(f"Unknown option for upload: {arg}")
        elif path is None:
            path = arg
        else:
            raise ParseError("upload takes exactly one path")

    if path is None:
        raise ParseError("upload requires a file or directory path")

    return UploadCommand(path=path, parallelism=parallelism, retries=retries, deferred=deferred, cache=cache)


def _parse_check(args: list[str]) -> CheckCommand:
    """Parse 'check [options]' command."""
    values = {}

    tokens = iter(args)
    for arg in tokens:
        if arg == "--data-dir":
            values["data_dir"] = _require_value(arg, next(tokens, None))
        elif arg == "--errors":
            values["errors_path"] = _require_value(arg, next(tokens, None))
        elif arg == "--report":
            values["report_path"] = _require_value(arg, next(tokens, None))
        elif arg == "--retry":
            values["retry"] = True
        elif arg == "--parallelism":
            values["parallelism"] = _parse_positive_int(arg, next(tokens, None))
        else:
            raise ParseError(f"Unknown argument for check: {arg}")

    return CheckCommand(**values)


def _require_value(option: str, value: Optional[str]) -> str:
    """Return the value following an option."""
    if value is None or value.startswith("--"):
        raise ParseError(f"{option} requires a value")
    return value


def _parse_positive_int(option: str, value: Optional[str]) -> int:
    """Parse a positive integer option value."""
    value = _require_value(option, value)
    try:
        number = int(value)
    except ValueError:
        raise ParseError(f"{option} must be an integer, got '{value}'")
    if number < 1:
        raise ParseError(f"{option} must be at least 1")
    return number
