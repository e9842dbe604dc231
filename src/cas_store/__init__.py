"""
CAS Store - Content-Addressable Object Store

Stores each distinct byte sequence once, addressed by its SHA-256 digest,
and keeps a separate metadata index mapping (bucket, key) names onto digests.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
