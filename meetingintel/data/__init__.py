"""Clients for the external research and LLM providers."""
