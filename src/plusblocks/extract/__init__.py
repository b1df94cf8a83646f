"""Browser-driven extraction of the block index and per-variant code."""
