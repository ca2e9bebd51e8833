"""
ProviderIndex - Healthcare Provider Query Index

An in-memory, read-only index of healthcare providers built from provider
scores, feature adherence scores and offered appointment slots, answering
ranked provider searches and single-provider detail lookups.
"""

__version__ = "1.0.0"
__author__ = "ProviderIndex Team"
