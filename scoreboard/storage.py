"""Named snapshot files under the saves directory (best effort, no versioning)."""
import logging
import os
import time
from typing import List

from pydantic import ValidationError

from .state import MatchState
from .utils import sanitize_filename

logger = logging.getLogger(__name__)


class SnapshotError(Exception):
    pass


class SnapshotNotFound(SnapshotError):
    pass


class InvalidSnapshot(SnapshotError):
    pass


def _with_extension(name: str) -> str:
    if not name.lower().endswith(".json"):
        name += ".json"
    return name


class SnapshotStorage:
    def __init__(self, directory: str):
        self.directory = directory

    def ensure_directory(self) -> None:
        os.makedirs(self.directory, exist_ok=True)

    def save(self, state: MatchState, filename: str = "") -> str:
        """Write ``state`` and return the file name actually used.

        Empty names fall back to a timestamp such as ``20250301-191500.json``.
        Raises OSError when the file cannot be written.
        """
        name = sanitize_filename(filename) or time.strftime("%Y%m%d-%H%M%S")
        name = _with_extension(name)
        self.ensure_directory()
        with open(os.path.join(self.directory, name), "w", encoding="utf-8") as fh:
            fh.write(state.model_dump_json(by_alias=True, indent=2))
        logger.info("Saved snapshot %s", name)
        return name

    def list_saves(self) -> List[str]:
        with os.scandir(self.directory) as entries:
            names = [
                entry.name
                for entry in entries
                if entry.is_file() and entry.name.lower().endswith(".json")
            ]
        return sorted(names)

    def load(self, filename: str) -> MatchState:
        name = sanitize_filename(filename)
        if not name:
            raise SnapshotNotFound("no file name given")
        path = os.path.join(self.directory, _with_extension(name))
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except FileNotFoundError:
            raise SnapshotNotFound(name)
        except OSError as exc:
            raise SnapshotError(f"cannot read {name}: {exc}")
        try:
            state = MatchState.model_validate_json(data)
        except ValidationError as exc:
            raise InvalidSnapshot(f"{name}: {exc.error_count()} invalid field(s)")
        logger.info("Loaded snapshot %s", name)
        return state
