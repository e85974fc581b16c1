"""Live observer notifications and the dashboard read API."""
