"""Upload pipeline: remote store client, bounded upload queue and orchestration."""
