"""Per-server enforcement configuration storage."""
