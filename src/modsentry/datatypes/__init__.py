"""Data structures shared across the moderation pipeline."""
