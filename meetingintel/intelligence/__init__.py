"""
Research aggregation and report generation.

Caching, CRM matching, research orchestration, the tool-calling
conversation and report validation/assembly.
"""
