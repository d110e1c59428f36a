import time
from pathlib import Path
from typing import Iterator, List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from streaming_kmeans.src.errors import DimensionMismatchError


class DirectoryBatchSource:
    """
    Turns a directory that receives text files into a stream of batches.

    Every poll collects the files that appeared since the previous poll;
    together they form one batch. Each line of a file is one vector of
    whitespace-separated numbers.
    """

    def __init__(self, directory: str, d: int, pattern: str = "*"):
        if d <= 0:
            raise ValueError(f"d must be greater than 0, got {d}")
        self.directory = Path(directory)
        self.d = d
        self.pattern = pattern
        self._seen: set[Path] = set()
        self.batch_id = 0

    # -----------------------
    # Internal helpers
    # -----------------------

    def _new_files(self) -> List[Path]:
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Batch directory does not exist: {self.directory}")
        files = sorted(
            path for path in self.directory.glob(self.pattern)
            if path.is_file() and not path.name.startswith(".") and path not in self._seen
        )
        return files

    def _load_file(self, path: Path) -> np.ndarray:
        """
        Parse one file into an (n, d) array.
        Blank files yield an empty array.
        """
        if path.stat().st_size == 0:
            return np.empty((0, self.d))
        try:
            df = pd.read_csv(path, sep=r"\s+", header=None, dtype=float)
        except pd.errors.EmptyDataError:
            return np.empty((0, self.d))
        except (pd.errors.ParserError, ValueError) as exc:
            raise DimensionMismatchError(
                f"{path.name}: not a table of {self.d}-dimensional vectors: {exc}",
                expected=self.d,
            ) from exc
        values = df.to_numpy(dtype=float)
        if values.shape[1] != self.d or np.isnan(values).any():
            raise DimensionMismatchError(
                f"{path.name}: expected {self.d} values per line, got rows of shape {values.shape}",
                expected=self.d,
                actual=values.shape[1],
            )
        return values

    # -----------------------
    # Streaming
    # -----------------------

    def poll(self) -> Optional[np.ndarray]:
        """
        Return one batch made of every new file, or None when nothing arrived.
        """
        files = self._new_files()
        if not files:
            return None
        # consumed even if malformed, so a bad file is never re-read
        self._seen.update(files)
        self.batch_id += 1
        batch = np.vstack([self._load_file(path) for path in files])
        logger.bind(event="batch_loaded", batch_id=self.batch_id).debug(
            "Loaded {n} vectors from {files} file(s)", n=batch.shape[0], files=len(files),
        )
        return batch

    def iter_batches(
        self, interval_seconds: float, max_batches: Optional[int] = None,
    ) -> Iterator[np.ndarray]:
        """
        Poll every `interval_seconds`, `max_batches` times (forever when None).

        An interval with no new files yields an empty batch. An interval
        containing a malformed file yields nothing: the whole batch is dropped.
        """
        polls = 0
        while max_batches is None or polls < max_batches:
            try:
                batch = self.poll()
            except DimensionMismatchError as exc:
                logger.bind(event="batch_rejected", batch_id=self.batch_id).error(
                    "Batch dropped: {error}", error=str(exc),
                )
            else:
                yield batch if batch is not None else np.empty((0, self.d))
            polls += 1
            if max_batches is None or polls < max_batches:
                time.sleep(interval_seconds)

    def reset(self):
        """
        Forget which files were already consumed.
        """
        self._seen = set()
        self.batch_id = 0
