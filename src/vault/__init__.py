from .documents import DocumentNotFound, VaultDocuments

__all__ = ["DocumentNotFound", "VaultDocuments"]
