"""Shared plumbing for maze datasets: output folders, metadata files and record lookup."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Generic, Iterable, List, Optional, Protocol, TypeVar, Union

PathLike = Union[str, Path]

METADATA_FILENAME = "mazes.json"

logger = logging.getLogger(__name__)


class SupportsToDict(Protocol):
    def to_dict(self) -> Dict[str, Any]:
        ...


RecordT = TypeVar("RecordT", bound=SupportsToDict)


def read_metadata(path: Path) -> List[Dict[str, Any]]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Maze metadata in {path} must be a list of records")
    return raw


def index_records(entries: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Key metadata entries by id; ids must be present and unique."""

    records: Dict[str, Dict[str, Any]] = {}
    for entry in entries:
        maze_id = entry.get("id")
        if not maze_id:
            raise ValueError("Each maze record must include an 'id'")
        maze_id = str(maze_id)
        if maze_id in records:
            raise ValueError(f"Duplicate maze id '{maze_id}' in metadata")
        records[maze_id] = entry
    return records


class AbstractDatasetBuilder(ABC, Generic[RecordT]):
    """Base class for builders that write maze assets under one output directory.

    Image and animation paths stored in records are relative to ``output_dir``,
    and the metadata file sits at its root, so an evaluator pointed at that
    file finds the assets without further configuration.
    """

    def __init__(self, output_dir: PathLike) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.metadata_path = self.output_dir / METADATA_FILENAME

    @abstractmethod
    def create_maze(self, *args, **kwargs) -> RecordT:
        """Build one maze and its assets from explicit settings."""

    @abstractmethod
    def create_random_maze(self) -> RecordT:
        """Build one maze with a seed drawn from the builder's generator."""

    def generate_dataset(
        self,
        count: int,
        *,
        metadata_path: Optional[PathLike] = None,
        append: bool = True,
    ) -> List[RecordT]:
        """Build ``count`` mazes and record them in the metadata file."""

        if count < 0:
            raise ValueError("count must be non-negative")
        records = [self.create_random_maze() for _ in range(count)]
        self.write_metadata(records, metadata_path, append=append)
        return records

    def write_metadata(
        self,
        records: Iterable[RecordT],
        metadata_path: Optional[PathLike] = None,
        *,
        append: bool = True,
    ) -> Path:
        """Merge records into the metadata file, replacing entries that share an id."""

        path = Path(metadata_path) if metadata_path is not None else self.metadata_path
        path.parent.mkdir(parents=True, exist_ok=True)
        entries: Dict[str, Dict[str, Any]] = {}
        if append and path.exists():
            entries = index_records(read_metadata(path))
        before = len(entries)

        written = 0
        for record in records:
            payload = record.to_dict()
            entries[str(payload["id"])] = payload
            written += 1

        path.write_text(json.dumps(list(entries.values()), indent=2), encoding="utf-8")
        logger.info(
            "Wrote %d records to %s (%d replaced, %d total)",
            written,
            path,
            before + written - len(entries),
            len(entries),
        )
        return path

    def relativize_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.output_dir).as_posix()
        except ValueError:
            return path.as_posix()


class AbstractDatasetEvaluator(ABC):
    """Base class for evaluators that score candidates against stored mazes.

    Relative asset paths in the metadata are resolved against ``base_dir``,
    which defaults to the directory holding the metadata file.
    """

    def __init__(
        self,
        metadata_path: PathLike,
        *,
        base_dir: Optional[PathLike] = None,
    ) -> None:
        self.metadata_path = Path(metadata_path)
        if not self.metadata_path.exists():
            raise FileNotFoundError(f"Metadata file not found: {self.metadata_path}")
        self.base_dir = Path(base_dir) if base_dir is not None else self.metadata_path.parent
        self._records = index_records(read_metadata(self.metadata_path))
        logger.debug("Loaded %d records from %s", len(self._records), self.metadata_path)

    def get_record(self, maze_id: str) -> Dict[str, Any]:
        try:
            return self._records[maze_id]
        except KeyError as exc:
            raise KeyError(f"Maze id '{maze_id}' not found in metadata") from exc

    def resolve_path(self, path_value: PathLike) -> Path:
        candidate = Path(path_value)
        if not candidate.is_absolute():
            candidate = self.base_dir / candidate
        return candidate

    @abstractmethod
    def evaluate(self, maze_id: str, *args, **kwargs):
        """Evaluate a candidate solution for the given maze."""


__all__ = [
    "AbstractDatasetBuilder",
    "AbstractDatasetEvaluator",
    "METADATA_FILENAME",
    "PathLike",
    "index_records",
    "read_metadata",
]
