"""Build number file shipped inside the application bundle."""

from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = structlog.get_logger(__name__)

ARTIFACT_FILE_NAME = "build_number.json"


class RuntimeBuildNumber(BaseModel):
    """Contents of the runtime artifact, read by the shipped application at startup."""

    build_number: int = Field(alias="buildNumber", ge=0)

    model_config = ConfigDict(populate_by_name=True)


def write_runtime_artifact(path: Path, build_number: int) -> Path:
    """Write the build number artifact. ``path`` may be a directory or the file itself."""
    file_path = path / ARTIFACT_FILE_NAME if path.is_dir() else path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(RuntimeBuildNumber(build_number=build_number).model_dump_json(by_alias=True), encoding="utf-8")
    return file_path


def read_runtime_artifact(path: Path) -> int | None:
    """Read the build number artifact, returning None when it is missing or unreadable."""
    file_path = path / ARTIFACT_FILE_NAME if path.is_dir() else path
    if not file_path.exists():
        logger.error("build_number_artifact_missing", path=str(file_path))
        return None
    try:
        return RuntimeBuildNumber.model_validate_json(file_path.read_text(encoding="utf-8").strip()).build_number
    except ValidationError as e:
        logger.error("build_number_artifact_invalid", path=str(file_path), error=str(e))
        return None
