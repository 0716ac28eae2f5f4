from __future__ import annotations

import re
from collections.abc import MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any

from downtime.core.config import settings

MachineGroupIndex = MutableMapping[str, str]


@dataclass(frozen=True)
class MachinePatterns:
    """Rules that recognise machine and machine-group labels in free-text cells.

    ``machine_name`` must cover a whole cell on the first pass and may be a
    substring on the fallback pass over the first ``scan_columns`` cells.
    ``machine_group`` is always a substring match and the whole cell is kept.
    """

    machine_name: re.Pattern[str]
    machine_group: re.Pattern[str]
    scan_columns: int = 5

    @classmethod
    def compile(
        cls, machine_name: str, machine_group: str, scan_columns: int = 5
    ) -> MachinePatterns:
        return cls(
            machine_name=re.compile(machine_name, re.IGNORECASE),
            machine_group=re.compile(machine_group, re.IGNORECASE),
            scan_columns=scan_columns,
        )

    @classmethod
    def from_settings(cls) -> MachinePatterns:
        return cls.compile(
            settings.machine_name_pattern,
            settings.machine_group_pattern,
            settings.machine_scan_columns,
        )


def classify_row(
    row: Sequence[Any],
    patterns: MachinePatterns,
    machine_groups: MachineGroupIndex,
) -> tuple[str | None, str | None]:
    """Return ``(machine_name, machine_group)`` found in the row.

    Records ``machine -> group`` in ``machine_groups`` when a group cell follows
    a machine cell in the same row, and falls back to a previously recorded
    group when the row carries none of its own.
    """
    machine_name: str | None = None
    machine_group: str | None = None

    for cell in row:
        if not isinstance(cell, str):
            continue
        text = cell.strip()
        if patterns.machine_name.fullmatch(text):
            machine_name = text
        elif patterns.machine_group.search(text):
            machine_group = text
            if machine_name:
                machine_groups[machine_name] = machine_group

    if not machine_name:
        for cell in row[: patterns.scan_columns]:
            if not isinstance(cell, str):
                continue
            match = patterns.machine_name.search(cell)
            if match:
                machine_name = match.group(0)
                break

    if not machine_group and machine_name in machine_groups:
        machine_group = machine_groups[machine_name]

    return machine_name, machine_group
