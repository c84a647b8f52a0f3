"""Customer Location Registry — HTTP API."""
