"""HTTP surface for the profit pipeline."""
