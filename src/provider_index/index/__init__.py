"""
Index construction for ProviderIndex.

Joins the three source datasets by provider identifier into an immutable
queryable index, applying the doctor and feature score thresholds.
"""
