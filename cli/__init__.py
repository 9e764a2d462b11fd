"""Command-line interface for uploading and verifying chunked content."""
