"""CLI entry point."""

import asyncio
import sys
import os

from pydantic import ValidationError

from common.logging_config import setup_logging
from cli.constants import HELP_TEXT
from cli.commands import dispatch
from cli.parser import ParseError, parse_command

COMPONENTS = ('cli', 'chunker', 'uploader', 'manifest', 'verifier')


def main() -> None:
    """Entry point for CLI."""
    args = sys.argv[1:]
    log_level = 'DEBUG' if '--debug' in args else os.getenv('LOG_LEVEL', 'INFO')

    for component in COMPONENTS:
        setup_logging(component, log_level=log_level)
    logger = setup_logging('cli', log_level=log_level)

    if '--debug' in args:
        logger.info("Debug logging enabled")
        args.remove('--debug')

    try:
        cmd = parse_command(args)
    except ParseError as e:
        print(f"Error: {e}\n\n{HELP_TEXT}", file=sys.stderr)
        sys.exit(2)

    logger.debug(f"Running command: {cmd.command}")
    try:
        message = asyncio.run(dispatch(cmd))
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise

    print(message)


if __name__ == "__main__":
    main()
