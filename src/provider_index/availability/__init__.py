"""
Availability matching for ProviderIndex.

Decides whether an appointment slot satisfies a time and duration query.
"""
