"""
Query engine for ProviderIndex.

Ranked provider search and single-provider detail lookup over a built index.
"""
