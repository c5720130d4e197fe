import re

from buildsync.errors import InvalidArgumentError

INTEGER_RE = re.compile(r"^[+-]?\d+$")


def parse_build_number(raw: int | str | None) -> int:
    """Parse a requested build number, accepting an int or a decimal string.

    Raises:
        InvalidArgumentError: If the value is missing, not an integer, or negative
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise InvalidArgumentError("Missing required parameter: buildNumber")

    if isinstance(raw, bool):
        raise InvalidArgumentError("buildNumber must be an integer")
    if isinstance(raw, int):
        value = raw
    else:
        text = raw.strip()
        if not INTEGER_RE.fullmatch(text):
            raise InvalidArgumentError("buildNumber must be an integer")
        value = int(text)

    if value < 0:
        raise InvalidArgumentError("buildNumber must be a non-negative integer")
    return value
