"""
Utility functions and helpers for Modsentry.

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Suppresses noise from
  verbose libraries (Discord internals, HTTP clients, uvicorn access logs).
"""
