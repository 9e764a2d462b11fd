"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class UploadCommand:
    """Upload a file or directory."""

    path: str
    parallelism: Optional[int] = None
    retries: Optional[int] = None
    deferred: Optional[bool] = None
    cache: Optional[bool] = None
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class CheckCommand:
    """Verify cached chunks against the store."""

    data_dir: Optional[str] = None
    errors_path: Optional[str] = None
    report_path: Optional[str] = None
    retry: bool = False
    parallelism: Optional[int] = None
    command: Literal["check"] = "check"


@dataclass(frozen=True)
class HelpCommand:
    """Show usage."""

    command: Literal["help"] = "help"


CommandRequest = UploadCommand | CheckCommand | HelpCommand
