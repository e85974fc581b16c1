"""Enforcement and the per-message moderation pipeline."""
