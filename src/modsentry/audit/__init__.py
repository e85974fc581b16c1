"""Append-only audit log of detected violations."""
