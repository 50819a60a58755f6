from docstore.api.http.health import router as health_router
from docstore.api.http.system import router as system_router
from docstore.api.http.stores import router as stores_router

__all__ = [
    "health_router",
    "system_router",
    "stores_router"
]
