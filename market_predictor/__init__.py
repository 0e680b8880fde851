"""Market Predictor — AI market analysis grounded in recent web search results."""

__version__ = "0.1.0"
