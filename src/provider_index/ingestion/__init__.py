"""
Data ingestion module for ProviderIndex.

Loads the provider score, feature score and appointment datasets from local
files into typed records, with optional row validation.
"""
