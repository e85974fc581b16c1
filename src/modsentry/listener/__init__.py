"""py-cord cogs that feed Discord events into Modsentry."""
