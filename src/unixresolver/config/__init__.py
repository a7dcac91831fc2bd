"""Settings and logging setup for unixresolver."""
