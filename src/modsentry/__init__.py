"""
Modsentry - AI-Powered Discord Moderation Pipeline

Modsentry watches the message stream of the Discord servers it is configured
for, asks an OpenAI-compatible model whether each message breaks the rules,
and enforces the server's configured response when it does.

Core Components:

- **Ingestion Pipeline**: One task per inbound message running the
  filter -> classify -> record -> notify -> act -> finalize -> delete protocol
- **Classification Client**: A single structured-output request per message
  that fails open to "no violation" on any error
- **Action Executor**: Warn, log-to-channel, kick, ban and custom command
  actions, each attempted independently in a fixed order
- **Audit Log Store**: SQLite-backed, two-phase audit records of every violation
- **Broadcast Hub**: Best-effort fan-out of new audit entries to live dashboard
  observers over WebSocket

Usage:
    from modsentry.main import main
    main()
"""
