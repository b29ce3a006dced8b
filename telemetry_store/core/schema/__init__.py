"""
Schema inference, value classification, metadata lookup and audit.
"""

from .audit import SchemaAuditor
from .inference import SchemaInferrer
from .metadata import (
    HttpMetadataProvider,
    MetadataProvider,
    NullMetadataProvider,
    StaticMetadataProvider,
)

__all__ = [
    "SchemaInferrer",
    "SchemaAuditor",
    "MetadataProvider",
    "NullMetadataProvider",
    "StaticMetadataProvider",
    "HttpMetadataProvider",
]
