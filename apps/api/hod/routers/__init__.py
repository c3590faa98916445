from .ingestion import router as ingestion_router

ROUTERS = (ingestion_router,)

__all__ = ["ROUTERS", "ingestion_router"]
