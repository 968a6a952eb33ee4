# ============================================
# Veracity - src/veracity/data/loaders/base_loader.py
# Base interface for table loaders
# ============================================

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from ...utils.exceptions import DataLoadError
from ...utils.logger import get_logger
from ...utils.timing import Timer
from ..table import Table

logger = get_logger('data.loaders.base')

class DataLoader(ABC):
    """
    Abstract base for everything that produces a Table from an external source

    Subclasses implement _load(); load_from() adds path checks, timing
    and logging around it.
    """

    name = "base"

    def load_from(self, path: Union[str, Path]) -> Table:
        """
        Load a table from path

        Raises:
            DataLoadError: If the path does not exist or cannot be read
        """
        path = Path(path)
        if not path.is_file():
            raise DataLoadError(f"File not found: {path}", path=path)

        with Timer(f"{self.name}_load", auto_log=False) as timer:
            table = self._load(path)

        logger.info(
            f"Loaded {table.row_count} rows x {table.column_count} columns from {path.name} "
            f"in {timer.result.duration_str}"
        )
        return table

    @abstractmethod
    def _load(self, path: Path) -> Table:
        """Read path into a Table"""
