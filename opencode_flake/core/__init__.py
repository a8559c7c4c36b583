"""Core automation: registry, pin store, drift detection, release coordination."""
