"""Collision-free file names.

    existing_file.npz -> existing_file_a.npz -> existing_file_aJ3.npz ...
"""

import logging
import random
import string
from pathlib import Path

logger = logging.getLogger(__name__)

ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase

# private generator: picking a name must not advance the simulation RNG
_name_rng = random.Random()


def _exists(path: Path) -> bool:
    # unlike Path.exists, only "no such file" counts as free; any other
    # OSError (permissions, name too long, ...) propagates
    try:
        path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return False
    return True


def generate_unique_filename(path, rng: random.Random | None = None) -> Path:
    """Return `path` if it is free, otherwise a free variant of it.

    An underscore and one random alphanumeric character are appended to the
    file stem. While the result still exists, further characters are
    appended (without another underscore). Each character multiplies the
    number of candidates by 62, so a handful of attempts is the norm; the
    loop ends with the `OSError` of the file system once the name becomes
    invalid.

    Args:
        path: Candidate path
        rng: Source of randomness (anything with a `choice` method)

    Returns:
        A path that does not exist at call time
    """
    rng = rng or _name_rng
    path = Path(path)
    if not _exists(path):
        return path

    suffix = path.suffix
    stem = path.name[: len(path.name) - len(suffix)] + "_" + rng.choice(ALPHABET)
    candidate = path.with_name(stem + suffix)
    while _exists(candidate):
        stem += rng.choice(ALPHABET)
        candidate = path.with_name(stem + suffix)

    logger.debug("Generated unique file name %s for %s", candidate.name, path)
    return candidate
