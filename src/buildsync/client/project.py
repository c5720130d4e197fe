"""Local project settings holding the platform version fields."""

import json
from pathlib import Path
from typing import Any, Self

from buildsync.errors import FormatError


class ProjectSettings:
    """Flat key-value view of a project's settings, optionally backed by a JSON file.

    Field names are dotted paths such as ``ios.build_number``; values are stored
    as-is (integers, strings or small objects).
    """

    def __init__(self, values: dict[str, Any] | None = None, path: Path | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self.path = path

    @classmethod
    def load(cls, path: Path) -> Self:
        """Read settings from ``path``; a missing file yields empty settings.

        Raises:
            FormatError: If the file is not a JSON object
        """
        if not path.exists():
            return cls(path=path)
        try:
            values = json.loads(path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise FormatError(f"Project settings file is not valid JSON: {path}: {e}") from e
        if not isinstance(values, dict):
            raise FormatError(f"Project settings file must contain a JSON object: {path}")
        return cls(values, path=path)

    def get(self, field: str) -> Any:
        return self._values.get(field)

    def set(self, field: str, value: Any) -> None:
        self._values[field] = value

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def save(self) -> None:
        """Write settings back to the file they were loaded from."""
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._values, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        tmp_path.replace(self.path)
