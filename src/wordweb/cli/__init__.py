"""Command line interface for WordWeb."""
