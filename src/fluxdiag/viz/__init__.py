"""
fluxdiag.viz
============

Plotting utilities for fluxdiag.

Design
------
• Plot modules are pure: they take arrays + metadata and return matplotlib figs/axes.
• Scripts (e.g. scripts/run_profiles.py) handle config, logging and saving.
"""
