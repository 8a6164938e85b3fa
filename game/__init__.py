"""Game-side wiring: content bootstrap and quest handler modules."""
