"""
Data layer for the Market Predictor.

Modules
-------
models.py         Pydantic models for sources, requests and API responses.
tavily_search.py  Tavily web-search client that produces ranked sources.
"""
