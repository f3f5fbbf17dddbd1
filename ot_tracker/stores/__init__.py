"""
Backend adapters: document store, blob store and identity provider.
"""

from ot_tracker.stores.base import (
    BlobStore,
    CallbackSubscription,
    Document,
    DocumentStore,
    DocumentStoreError,
    IdentityProvider,
    ImageUploadError,
    QueryCallback,
    Snapshot,
    SnapshotCallback,
    Subscription,
)
from ot_tracker.stores.supabase_blobs import SupabaseBlobStore, generate_evidence_path
from ot_tracker.stores.supabase_documents import PollingSubscription, SupabaseDocumentStore
from ot_tracker.stores.supabase_identity import SupabaseIdentityProvider

__all__ = [
    "BlobStore",
    "CallbackSubscription",
    "Document",
    "DocumentStore",
    "DocumentStoreError",
    "IdentityProvider",
    "ImageUploadError",
    "PollingSubscription",
    "QueryCallback",
    "Snapshot",
    "SnapshotCallback",
    "Subscription",
    "SupabaseBlobStore",
    "SupabaseDocumentStore",
    "SupabaseIdentityProvider",
    "generate_evidence_path",
]
