"""Statistical diagnostics of sampled signals."""
