"""CLI constants and help text."""

GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"

DEFAULT_ERRORS_PATH = "errors.json"
DEFAULT_REPORT_PATH = "report.csv"

HELP_TEXT = """Usage: chunked-upload [--debug] <command> [options]

Commands:
  upload <path> [options]             Upload a file or directory and print its manifest address
      --parallelism N                 Concurrent chunk uploads
      --retries N                     Attempts per chunk
      --no-deferred                   Wait for the store to finalize each chunk
      --cache                         Keep a local copy of every uploaded chunk
  check [options]                     Re-fetch cached chunks and compare them with local copies
      --data-dir DIR                  Chunk cache directory
      --errors FILE                   Error ledger to write (default errors.json)
      --report FILE                   Latency report to write (default report.csv)
      --retry                         Only check the addresses listed in the error ledger
      --parallelism N                 Concurrent checks
  help                                Show this help

Environment:
  STORE_API_URL                       Store endpoint (default http://127.0.0.1:1633)
  STAMP                               Postage stamp passed through on uploads
  LOG_LEVEL                           DEBUG, INFO, WARNING or ERROR"""
