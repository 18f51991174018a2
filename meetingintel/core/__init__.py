"""Configuration, logging, errors and request models."""
