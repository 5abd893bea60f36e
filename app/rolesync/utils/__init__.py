"""Console output and subprocess helpers."""
