"""
Batch Processing
================
Runs many files through the ImagePipeline and keeps the results.

- BatchProcessor: strictly sequential, one file at a time, input order
  preserved; a failing file becomes an error-shaped result and never
  stops the rest of the batch
- ResultStore: owned list of results with stable ids, export to disk,
  and explicit release of every output handle
"""

import itertools
import logging
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Union

from .pipeline import FileLike, ImagePipeline, input_name
from .results import ProcessedResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
ResultCallback = Callable[[ProcessedResult], None]


def unique_path(path: Path) -> Path:
    """Return path, or "<stem> (n)<suffix>" with the first free n."""
    if not path.exists():
        return path
    for n in itertools.count(1):
        candidate = path.with_name(f"{path.stem} ({n}){path.suffix}")
        if not candidate.exists():
            return candidate


class BatchProcessor:
    """Processes a list of inputs one after another."""

    def __init__(self, pipeline: ImagePipeline):
        self.pipeline = pipeline

    def process_one(self, file: FileLike) -> ProcessedResult:
        """Process a file, converting any failure into an error result."""
        name = input_name(file)
        try:
            return self.pipeline.process(file)
        except Exception as e:
            logger.warning("Failed to process %s: %s", name, e)
            return ProcessedResult.from_error(name, e)

    def iter_process(
            self,
            files: Sequence[FileLike],
            on_progress: Optional[ProgressCallback] = None
    ) -> Iterator[ProcessedResult]:
        """
        Yield one result per input, in input order.

        on_progress(completed, total) runs after each item, before the
        result is yielded.
        """
        total = len(files)
        for completed, file in enumerate(files, start=1):
            result = self.process_one(file)
            if on_progress is not None:
                on_progress(completed, total)
            yield result

    def process_all(
            self,
            files: Sequence[FileLike],
            on_progress: Optional[ProgressCallback] = None,
            on_result: Optional[ResultCallback] = None
    ) -> List[ProcessedResult]:
        """
        Process every file and return the ordered results.

        Args:
            files: Paths or InputFile objects.
            on_progress: Called as on_progress(completed, total) after
                each item.
            on_result: Called with each result as it is produced.

        Returns:
            One ProcessedResult per input, in input order.
        """
        results: List[ProcessedResult] = []
        for result in self.iter_process(files, on_progress):
            results.append(result)
            if on_result is not None:
                on_result(result)

        failed = sum(1 for r in results if not r.success)
        logger.info(
            "Batch finished: %d succeeded, %d failed",
            len(results) - failed, failed
        )
        return results


class ResultStore:
    """
    Ordered repository of processed results.

    Ids are assigned on add() and never reused, so removing one result
    does not shift the ids of the others.
    """

    def __init__(self):
        self._results: Dict[int, ProcessedResult] = {}
        self._ids = itertools.count(1)

    def add(self, result: ProcessedResult) -> int:
        result_id = next(self._ids)
        self._results[result_id] = result
        return result_id

    def extend(self, results: Sequence[ProcessedResult]) -> List[int]:
        return [self.add(r) for r in results]

    def get(self, result_id: int) -> ProcessedResult:
        """
        Raises:
            KeyError: If the id is unknown or was removed.
        """
        return self._results[result_id]

    def ids(self) -> List[int]:
        return list(self._results)

    def items(self):
        return list(self._results.items())

    def successful(self) -> List[ProcessedResult]:
        return [r for r in self._results.values() if r.success]

    def failed(self) -> List[ProcessedResult]:
        return [r for r in self._results.values() if not r.success]

    def remove(self, result_id: int):
        """Remove a result and release its handles."""
        result = self._results.pop(result_id)
        result.release()

    def clear(self):
        """Release every result and empty the store."""
        for result in self._results.values():
            result.release()
        self._results.clear()

    def export(self, result_id: int, output_dir: Union[str, Path]) -> Path:
        """
        Write a cleaned image to output_dir as <name>_clean.png.

        An existing file is never overwritten: the name gets a " (1)",
        " (2)", ... counter before the extension instead.

        Raises:
            KeyError: If the id is unknown.
            ValueError: If the result is a failure or was released.
        """
        result = self.get(result_id)
        if not result.success:
            raise ValueError(f"{result.filename} has no processed image to export")
        target = unique_path(Path(output_dir) / result.output_filename)
        return result.processed.save(target)

    def export_all(self, output_dir: Union[str, Path]) -> List[Path]:
        """Export every successful result, in insertion order."""
        return [
            self.export(result_id, output_dir)
            for result_id, result in self._results.items()
            if result.success
        ]

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[ProcessedResult]:
        return iter(list(self._results.values()))

    def __contains__(self, result_id: int) -> bool:
        return result_id in self._results
