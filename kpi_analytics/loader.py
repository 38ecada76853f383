"""Load exported CSV / Excel files into rows."""

from pathlib import Path

import pandas as pd
from loguru import logger
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)

from .constants import SUPPORTED_EXTENSIONS, Dataset, LogMessage
from .models import Datasets, Row


def load_rows(path: Path | str) -> list[Row]:
    """Read one export into rows.

    Every cell is read as text; headers are trimmed and lower-cased and
    fully blank rows are dropped.

    Args:
        path: A .csv, .xlsx or .xls file.

    Returns:
        list[Row]: One Row per non-blank data row, in file order.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the extension is not supported.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    elif suffix in (".xlsx", ".xls"):
        df = pd.read_excel(path, dtype=str, keep_default_na=False)
    else:
        raise ValueError(f"Unsupported file type '{suffix}' for {path}")

    df.columns = [str(column).strip().lower() for column in df.columns]
    df = df.fillna("")
    if not df.empty:
        df = df[df.apply(lambda row: any(str(cell).strip() for cell in row), axis=1)]

    rows = [Row.from_dict(data=record) for record in df.to_dict(orient="records")]
    logger.debug(LogMessage.LOADED_ROWS.format(len(rows), path))
    return rows


def find_dataset_file(data_dir: Path, dataset: Dataset) -> Path | None:
    """Find ``<data_dir>/<dataset>.<ext>`` for the first supported extension present."""
    for extension in SUPPORTED_EXTENSIONS:
        candidate = data_dir / f"{dataset.value}{extension}"
        if candidate.exists():
            return candidate
    return None


def load_datasets(data_dir: Path | str) -> Datasets:
    """Load every known export from a directory; missing exports load as empty.

    Args:
        data_dir: Directory holding files named after each Dataset value.

    Returns:
        Datasets: Parsed rows for each export.

    Raises:
        FileNotFoundError: If ``data_dir`` does not exist.
    """
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    loaded: dict[str, list[Row]] = {}
    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TextColumn("[green]{task.fields[rows]} rows"),
    ) as progress:
        task = progress.add_task("Loading exports...", total=len(Dataset), rows=0)
        total_rows = 0

        for dataset in Dataset:
            path = find_dataset_file(data_dir, dataset)
            if path is None:
                logger.warning(LogMessage.MISSING_DATASET.format(dataset.value, data_dir))
                loaded[dataset.value] = []
            else:
                logger.info(LogMessage.LOADING_DATASET.format(dataset.value, path))
                loaded[dataset.value] = load_rows(path)
                total_rows += len(loaded[dataset.value])

            progress.update(task, advance=1, rows=total_rows)

    return Datasets(**loaded)
