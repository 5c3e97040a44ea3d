"""Core services: record lifecycle, state codec and the OAuth flow."""
