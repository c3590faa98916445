from .ingestion import (
    ApproveResponse,
    BrainDumpRequest,
    ContextImportRequest,
    ContextImportResponse,
    IgnoreRequest,
    ItemChanges,
    ItemKind,
    MinutesRequest,
    MinutesResponse,
    ReviewResponse,
)

__all__ = [
    "ApproveResponse",
    "BrainDumpRequest",
    "ContextImportRequest",
    "ContextImportResponse",
    "IgnoreRequest",
    "ItemChanges",
    "ItemKind",
    "MinutesRequest",
    "MinutesResponse",
    "ReviewResponse",
]
