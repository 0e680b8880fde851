"""LangGraph pipeline that turns a ticker into an analysis."""
