"""Metadata endpoints for exposing API information."""

from typing import Any

from fastapi import APIRouter

from buildsync.web.deps import AppDep

router = APIRouter(tags=["metadata"])


@router.get(
    "/",
    summary="Get API information",
    description="Returns the API name, version, configured storage backend, and available endpoints.",
    operation_id="getInfo",
    responses={200: {"description": "API metadata"}},
)
async def get_info(app: AppDep) -> dict[str, Any]:
    return app.get_info()


@router.get("/health", summary="Health check", operation_id="healthCheck")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}
