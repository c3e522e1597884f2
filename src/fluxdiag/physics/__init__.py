"""Flux functions, geometries and flux-surface diagnostics."""
