"""Configuration, dependency wiring and persistence backends."""
