"""LLM-facing agents and their prompts."""
