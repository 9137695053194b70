"""Command-line interface for agentic-trust."""
