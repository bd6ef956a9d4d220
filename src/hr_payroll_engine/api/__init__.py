"""HTTP adapter for the engine."""
