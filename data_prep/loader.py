from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd

from core.schema import OPTIONAL_TABLES, TABLE_FILES

logger = logging.getLogger(__name__)

_READERS = {
    ".csv": pd.read_csv,
    ".xlsx": pd.read_excel,
    ".xls": pd.read_excel,
}


def load_table(path: Union[str, Path]) -> pd.DataFrame:
    """Load one pre-cleaned table; the reader is picked by file extension."""
    path = Path(path)
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise ValueError(f"Unsupported table format {path.suffix!r} for {path}")
    return reader(path)


def _find_table_file(data_dir: Path, stem: str) -> Optional[Path]:
    for ext in _READERS:
        candidate = data_dir / f"{stem}{ext}"
        if candidate.exists():
            return candidate
    return None


def load_tables(data_dir: Union[str, Path] = "data") -> Dict[str, pd.DataFrame]:
    """
    Load every analysis table from the data directory.

    File stems come from core.schema.TABLE_FILES (e.g. households.csv,
    census_age.xlsx). Optional tables that are absent are skipped; any other
    absent table raises FileNotFoundError.
    """
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    tables: Dict[str, pd.DataFrame] = {}
    for name, stem in TABLE_FILES.items():
        path = _find_table_file(data_dir, stem)
        if path is None:
            if name in OPTIONAL_TABLES:
                logger.info("Optional table %s not found in %s, skipping", name, data_dir)
                continue
            raise FileNotFoundError(f"Missing table {name!r}: expected {stem}.csv/.xlsx/.xls in {data_dir}")
        tables[name] = load_table(path)
        logger.info("Loaded %s: %d rows from %s", name, len(tables[name]), path.name)
    return tables
