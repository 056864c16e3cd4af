"""CLI commands for WordWeb."""
