"""Case-insensitive agent name matching."""

from collections.abc import Iterable, Mapping


def normalize_agent_name(name: str) -> str:
    """Return the identity key for an agent display name (trimmed, case-folded)."""
    return name.strip().casefold()


class AgentIndex:
    """Two-tier lookup from raw agent spellings to known agent names.

    Resolution tries the exact map first, then a separately built
    normalized map. The first name registered for a normalized key is the
    one case-insensitive lookups resolve to.

    Attributes:
        names: Registered agent names in registration order.
    """

    def __init__(self, names: Iterable[str] = ()):
        self.names: list[str] = []
        self._exact: set[str] = set()
        self._normalized: dict[str, str] = {}
        for name in names:
            self.add(name)

    def __contains__(self, name: object) -> bool:
        return name in self._exact

    def __len__(self) -> int:
        return len(self.names)

    def add(self, name: str) -> str:
        """Register ``name`` as an agent of its own and return it."""
        if name not in self._exact:
            self._exact.add(name)
            self.names.append(name)
            self._normalized.setdefault(normalize_agent_name(name), name)
        return name

    def resolve(self, name: str) -> str | None:
        """Resolve a raw spelling: exact match first, then case-insensitive."""
        if name in self._exact:
            return name
        return self._normalized.get(normalize_agent_name(name))

    def resolve_or_add(self, name: str) -> str:
        return self.resolve(name) or self.add(name)


def fold_counts(
    counts: Mapping[str, int],
    index: AgentIndex,
    *,
    register_unmatched: bool,
) -> dict[str, int]:
    """Credit each raw spelling's count to the agent it resolves to.

    Args:
        counts: Raw agent spelling -> count.
        index: Agent index shared across datasets in one run.
        register_unmatched: When True, unresolved spellings become new agents;
            otherwise their counts are dropped.

    Returns:
        dict[str, int]: Resolved agent name -> summed count.
    """
    folded: dict[str, int] = {}
    for raw_name, count in counts.items():
        if register_unmatched:
            agent = index.resolve_or_add(raw_name)
        else:
            agent = index.resolve(raw_name)
            if agent is None:
                continue
        folded[agent] = folded.get(agent, 0) + count
    return folded


def fold_by_date(
    by_date: Mapping[str, Mapping[str, int]],
    index: AgentIndex,
) -> dict[str, dict[str, int]]:
    """Merge the per-date maps of every spelling into the agent it resolves to."""
    folded: dict[str, dict[str, int]] = {}
    for raw_name, dates in by_date.items():
        agent_dates = folded.setdefault(index.resolve_or_add(raw_name), {})
        for date_str, count in dates.items():
            agent_dates[date_str] = agent_dates.get(date_str, 0) + count
    return folded
