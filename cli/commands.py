"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Any, Optional

from cli.config import Config
from cli.constants import DEFAULT_ERRORS_PATH, DEFAULT_REPORT_PATH, GREEN, HELP_TEXT, RED, RESET
from cli.models import CheckCommand, CommandRequest, HelpCommand, UploadCommand
from cli.utils import ProgressReporter, VerificationProgress
from common.constants import DEFAULT_VERIFY_PARALLELISM
from common.exceptions import ExhaustedRetryError, StreamReadError
from common.logging_config import get_logger
from uploader.cache import ChunkCache
from uploader.pipeline import estimate_upload_chunks, upload
from uploader.store_client import StoreClient
from verifier.check import verify
from verifier.ledger import ErrorLedger

logger = get_logger(__name__)


def default_config() -> Config:
    """Load the per-user configuration file."""
    return Config(Path.home() / '.chunked-upload' / 'config.json')


async def handle_upload(cmd: UploadCommand, config: Config, store: Optional[Any] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with path and option overrides
        config: Configuration instance
        store: Optional store client for dependency injection (testing)

    Returns:
        Success or error message
    """
    path = Path(cmd.path)
    if not path.exists():
        return f"{RED}Path not found: {cmd.path}{RESET}"

    options = config.to_options(
        parallelism=cmd.parallelism,
        retries=cmd.retries,
        deferred=cmd.deferred,
        cache_chunks_locally=cmd.cache,
    )

    reporter = ProgressReporter(estimate_upload_chunks(path))

    try:
        result = await upload(
            path,
            options,
            store=store,
            on_success=reporter.on_success,
            on_failure=reporter.on_failure
        )
    except ExhaustedRetryError as e:
        reporter.finish()
        ErrorLedger(e.failed).save(DEFAULT_ERRORS_PATH)
        logger.error(f"Upload failed: {e}")
        return (
            f"{RED}Upload failed: {len(e.failed)} chunk(s) exhausted {e.attempts} attempts "
            f"(first: {e.address}); failed addresses saved to {DEFAULT_ERRORS_PATH}{RESET}"
        )
    except StreamReadError as e:
        reporter.finish()
        logger.error(f"Upload failed: {e}")
        return f"{RED}Upload failed: {e}{RESET}"
    reporter.finish()

    lines = [f"{address} {relative}" for relative, address in result.files]
    lines.append(f"{GREEN}manifest: {config.get_store_url().rstrip('/')}/bzz/{result.manifest}/{RESET}")
    return "\n".join(lines)


async def handle_check(cmd: CheckCommand, config: Config, store: Optional[Any] = None) -> str:
    """
    Handle 'check' command.

    Args:
        cmd: CheckCommand with cache directory and output paths
        config: Configuration instance
        store: Optional store client for dependency injection (testing)

    Returns:
        Summary message
    """
    options = config.to_options()
    cache = ChunkCache(cmd.data_dir or options.cache_dir, options.cache_include_span)
    errors_path = cmd.errors_path or DEFAULT_ERRORS_PATH
    report_path = cmd.report_path or DEFAULT_REPORT_PATH

    if cmd.retry:
        try:
            addresses = ErrorLedger.load(errors_path).addresses
        except (OSError, ValueError) as e:
            return f"{RED}Cannot read error ledger {errors_path}: {e}{RESET}"
    else:
        addresses = cache.list_addresses()

    parallelism = cmd.parallelism or DEFAULT_VERIFY_PARALLELISM
    progress = VerificationProgress(len(addresses))
    if store is None:
        async with StoreClient(options.store_url, timeout=options.timeout) as client:
            report = await verify(
                addresses, cache, client, parallelism=parallelism, on_result=progress.on_result
            )
    else:
        report = await verify(
            addresses, cache, store, parallelism=parallelism, on_result=progress.on_result
        )
    progress.finish()

    report.save_report(report_path)
    report.errors.save(errors_path)

    color = GREEN if not report.error_count else RED
    return (
        f"{color}chunks: {len(addresses)}, success: {report.success_count}, "
        f"error: {report.error_count}{RESET}"
    )


async def dispatch(cmd: CommandRequest, config: Optional[Config] = None) -> str:
    """
    Run a parsed command.

    Args:
        cmd: Parsed command
        config: Optional configuration (defaults to the per-user file)

    Returns:
        Message to print
    """
    if isinstance(cmd, HelpCommand):
        return HELP_TEXT
    if config is None:
        config = default_config()
    if isinstance(cmd, UploadCommand):
        return await handle_upload(cmd, config)
    return await handle_check(cmd, config)
