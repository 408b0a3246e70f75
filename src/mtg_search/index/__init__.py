"""
Index Package

Namespace lifecycle, batched upload, local metadata records and ranked
search for turbopuffer-backed card indexes.
"""

from .metadata import IndexMetadata, MetadataStore
from .namespace import allocate_namespace, ensure_namespace_absent, teardown_namespace
from .search import RankedQuery, search_namespace
from .uploader import UploadResult, upload_document

__all__ = [
    "IndexMetadata",
    "MetadataStore",
    "allocate_namespace",
    "ensure_namespace_absent",
    "teardown_namespace",
    "RankedQuery",
    "search_namespace",
    "UploadResult",
    "upload_document",
]
