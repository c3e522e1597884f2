"""Structured grids and quadrature weights."""
