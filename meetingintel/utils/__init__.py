"""Shared reliability utilities."""
