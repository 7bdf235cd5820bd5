"""Core services: configuration-aware transport, oracle client, storage and errors."""
