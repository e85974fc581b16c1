"""SQLite persistence: connection handling, schema and the Database coordinator."""
