"""Client for the external AI classification service."""
