"""CLI command groups for canvastag."""
