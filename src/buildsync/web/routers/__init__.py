from buildsync.web.routers.build_numbers import router as build_numbers_router
from buildsync.web.routers.metadata import router as metadata_router

__all__ = [
    "build_numbers_router",
    "metadata_router",
]
