"""Persist analysis outputs, personal records and the agent roster."""

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import polars as pl
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from .analyzers.records import AllRecords
from .constants import (
    DEFAULT_METRICS_OUTPUT,
    DEFAULT_RECORDS_FILE,
    JSON_INDENT,
    LogMessage,
)
from .models import Metrics, Team


class ResultStorage:
    """Handles saving metrics and analysis results to disk."""

    def save_metrics_csv(
        self,
        *,
        metrics: Sequence[Metrics],
        filepath: Path | str = DEFAULT_METRICS_OUTPUT,
    ) -> None:
        """Save per-agent metrics to a CSV file using Polars, one row per agent.

        Args:
            metrics: Metrics records, already sorted by agent name.
            filepath: Path where the CSV file should be saved.
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        if not metrics:
            logger.warning("No agent metrics to save to CSV")
            return

        df = pl.DataFrame([m.to_dict() for m in metrics])
        df.write_csv(filepath)

        logger.success(LogMessage.SAVED_METRICS.format(len(df), filepath))

    def save_json(self, *, data: Any, filepath: Path | str, label: str) -> None:
        """Write any JSON-serializable result (or an object with ``to_dict``) to disk.

        ``None`` is written as JSON ``null``, which is how an absent quartile
        analysis is stored.
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        payload = data.to_dict() if hasattr(data, "to_dict") else data
        with filepath.open("w") as f:
            json.dump(payload, f, indent=JSON_INDENT, default=str)

        logger.success(LogMessage.SAVED_JSON.format(label, filepath))


class RecordsStore:
    """JSON-file persistence for personal records.

    Attributes:
        filepath: Location of the records file.
    """

    def __init__(self, *, filepath: Path | str = DEFAULT_RECORDS_FILE):
        self.filepath = Path(filepath)

    def load(self) -> AllRecords:
        """Load stored records; a missing file means no records yet."""
        if not self.filepath.exists():
            return AllRecords()

        with self.filepath.open() as f:
            data = json.load(f)
        return AllRecords.from_dict(data=data)

    def save(self, records: AllRecords) -> None:
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        with self.filepath.open("w") as f:
            json.dump(records.to_dict(), f, indent=JSON_INDENT)

        logger.success(LogMessage.SAVED_JSON.format("records", self.filepath))


class TeamConfig(BaseModel):
    """A team entry in the roster file."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Stable team identifier")
    name: str = Field(description="Display name")
    agent_names: list[str] = Field(
        default_factory=list,
        alias="agentNames",
        description="Member agent display names",
    )

    def to_team(self) -> Team:
        return Team(id=self.id, name=self.name, agent_names=tuple(self.agent_names))


class RosterConfig(BaseModel):
    """Senior designations and team groupings, as stored in the roster file."""

    seniors: list[str] = Field(
        default_factory=list, description="Agent display names designated senior"
    )
    teams: list[TeamConfig] = Field(default_factory=list, description="Team groupings")


def load_roster(filepath: Path | str | None) -> tuple[tuple[str, ...], tuple[Team, ...]]:
    """Read and validate a roster file.

    Args:
        filepath: Roster JSON path; None means an empty roster.

    Returns:
        tuple: (senior agent names, teams).

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the file does not match the roster schema.
    """
    if filepath is None:
        return (), ()

    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Roster file not found: {filepath}")

    roster = RosterConfig.model_validate_json(filepath.read_text())
    return tuple(roster.seniors), tuple(team.to_team() for team in roster.teams)
