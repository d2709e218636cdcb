"""HTTP adapter for the signal engine."""
