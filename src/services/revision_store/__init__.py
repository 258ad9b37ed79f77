from services.revision_store.store import RevisionStore

__all__ = ["RevisionStore"]
