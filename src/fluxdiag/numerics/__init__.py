"""Elementwise construction and reductions on grid-sampled fields."""
