from pathlib import Path

from pydantic_settings import BaseSettings


class ClientConfig(BaseSettings):
    """Build-side configuration loaded from environment variables."""

    api_base_url: str = ""  # Registry URL; required unless use_local_provider is set
    use_local_provider: bool = False  # Increment the project's own value instead of asking the registry
    use_local_as_fallback: bool = True  # Use the project's own value when the registry fails
    timeout_seconds: float = 10.0
    settings_path: Path = Path("project_settings.json")
    artifact_path: Path | None = None  # Where to write build_number.json for the shipped application

    model_config = {
        "env_file": [".env"],
        "env_prefix": "BUILDSYNC_CLIENT_",
        "extra": "ignore",
    }
