"""Infrastructure adapters (slot persistence, remote model client, export)."""
