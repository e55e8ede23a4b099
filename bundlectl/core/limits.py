"""Shared numeric limits used by validation and the uploaders."""

# Default HTTP timeout for bundler requests
DEFAULT_HTTP_TIMEOUT_SECONDS = 30

# Bundler chunk size bounds (bytes)
MIN_CHUNK_SIZE = 1_000_000
MAX_CHUNK_SIZE = 190_000_000

# Upper bound on worker/batch widths accepted from users
MAX_WORKERS = 100

# Upload widths and sizes used when neither a profile nor a flag sets them
DEFAULT_CHUNK_SIZE = 25_000_000
DEFAULT_BATCH_SIZE = 5
DEFAULT_CONCURRENCY = 5
