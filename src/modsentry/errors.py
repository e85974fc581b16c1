"""
Exception types raised by Modsentry components.

Most failures in the moderation pipeline are contained where they happen and
only logged. The types here cover the conditions that callers need to tell
apart from ordinary transport errors.
"""


class ModsentryError(Exception):
    """Base class for all Modsentry errors."""


class PlatformError(ModsentryError):
    """A chat platform target (server, channel, user, message) could not be resolved."""


class AuditStoreError(ModsentryError):
    """An audit log write failed after all retry attempts."""


class AuditEntryFinalizedError(AuditStoreError):
    """The audit entry is unknown or its actions were already finalized."""
