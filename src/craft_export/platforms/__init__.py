"""Output platforms."""
