"""
Configuration management for Modsentry.

- **app_configuration.py**: File-lock based YAML loader for global settings.
  Exposes typed section helpers for the AI client, enforcement timeouts,
  audit write retries, the dashboard server and the database location.
  Falls back to defaults on missing or malformed config files.

- **ai_settings.py** / **runtime_settings.py**: Thin typed wrappers around
  the individual sections of ``config/app_config.yml``.
"""
