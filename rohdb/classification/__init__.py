"""
Name Classification

Modules:
    splitter: VendorProductSplitter and its RetryPolicy
"""

from rohdb.classification.splitter import RetryPolicy, VendorProductSplitter

__all__ = ["RetryPolicy", "VendorProductSplitter"]
