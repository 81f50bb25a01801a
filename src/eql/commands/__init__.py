"""CLI commands for the eql tool."""
