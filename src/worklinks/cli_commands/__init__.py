"""Click command groups registered on the worklinks CLI."""
