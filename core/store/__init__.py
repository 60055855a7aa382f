from .mongo_client import DocumentStore, StoreCollection, StoreConfig, StoreRegistry

__all__ = ["DocumentStore", "StoreCollection", "StoreConfig", "StoreRegistry"]
