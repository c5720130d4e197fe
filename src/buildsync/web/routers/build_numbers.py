from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from buildsync.web.deps import AppDep
from buildsync.web.openapi import ErrorResponse, MessageResponse

router: APIRouter = APIRouter(tags=["BuildNumber"])

BundleIdQuery = Annotated[str | None, Query(alias="bundleId", description="Bundle ID, e.g. com.company.game")]
PlatformQuery = Annotated[
    str | None, Query(alias="platform", description='Platform name, e.g. iOS/Android/MacOS. Defaults to "default"')
]


class BuildNumberResponse(BaseModel):
    """Issued or stored build number."""

    success: bool = True
    build_number: int = Field(..., alias="buildNumber", description="Build number for the bundle")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {"examples": [{"success": True, "buildNumber": 42}]},
    }


@router.get(
    "/getNextBuildNumber",
    summary="Get next build number & increment",
    description=(
        "Atomically increments the counter for the bundle and platform and returns the new value. "
        "A bundle that has never been seen starts at 1. Every call changes state."
    ),
    operation_id="getNextBuildNumber",
    responses={
        200: {"description": "Returns the next available build number"},
        400: {"model": ErrorResponse, "description": "Missing bundleId"},
        503: {"model": ErrorResponse, "description": "Backend unavailable"},
    },
)
async def get_next_build_number(
    app: AppDep, bundle_id: BundleIdQuery = None, platform: PlatformQuery = None
) -> BuildNumberResponse:
    build_number = await app.get_next_build_number(bundle_id, platform)
    return BuildNumberResponse(build_number=build_number)


@router.post(
    "/setBuildNumber",
    summary="Set current synced build number for a bundle",
    description=(
        "Unconditionally overwrites the stored build number. The next call to getNextBuildNumber "
        "returns this value plus one. The value may be lower than the current one."
    ),
    operation_id="setBuildNumber",
    responses={
        200: {"description": "Returns the stored build number"},
        400: {"model": ErrorResponse, "description": "Missing bundleId, or buildNumber missing or not a non-negative integer"},
        503: {"model": ErrorResponse, "description": "Backend unavailable"},
    },
)
async def set_build_number(
    app: AppDep,
    bundle_id: BundleIdQuery = None,
    platform: PlatformQuery = None,
    build_number: Annotated[
        str | None, Query(alias="buildNumber", description="New build number to set (non-negative integer)")
    ] = None,
) -> BuildNumberResponse:
    stored = await app.set_build_number(bundle_id, platform, build_number)
    return BuildNumberResponse(build_number=stored)


@router.delete(
    "/deleteBundleId",
    summary="Delete a bundle ID and its build number",
    description="Deletes the stored build number. Responds with 404 when nothing was stored for the bundle and platform.",
    operation_id="deleteBundleId",
    responses={
        200: {"model": MessageResponse, "description": "Bundle ID deleted successfully"},
        400: {"model": ErrorResponse, "description": "Missing bundleId"},
        404: {"model": MessageResponse, "description": "Bundle ID not found"},
        503: {"model": ErrorResponse, "description": "Backend unavailable"},
    },
)
async def delete_bundle_id(app: AppDep, bundle_id: BundleIdQuery = None, platform: PlatformQuery = None) -> JSONResponse:
    result = await app.delete_bundle_id(bundle_id, platform)
    body = MessageResponse(success=result.deleted, message=result.message)
    return JSONResponse(status_code=200 if result.deleted else 404, content=body.model_dump())
