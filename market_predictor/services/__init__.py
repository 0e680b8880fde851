"""Application services exposed to the CLI and the web layer."""
