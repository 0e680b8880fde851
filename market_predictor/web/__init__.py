"""Flask web front-end and JSON API."""
