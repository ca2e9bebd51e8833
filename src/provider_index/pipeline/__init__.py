"""
Pipeline entry points for ProviderIndex.
"""
