"""
Table-number sequencing.

A TableNumberSequence is the counter state taken off the options row. The
assignment helpers below only touch the sequence and the project objects they
are handed, so they can run without a database.

Group layout: group i covers [start_i, start_{i+1}) where start_i is the sum
of the sizes of the groups before it. The last group has no upper bound.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.jury.modules.options.models import Options


class Numbered(Protocol):
    id: int | None
    location: int
    group: int


def group_starts(group_sizes: Iterable[int], num_groups: int) -> list[int]:
    """First table number of each group."""
    sizes = list(group_sizes)
    if len(sizes) < num_groups - 1:
        raise ValueError(f"need {num_groups - 1} group sizes for {num_groups} groups, got {len(sizes)}")
    starts = [0] * num_groups
    for i in range(1, num_groups):
        starts[i] = starts[i - 1] + sizes[i - 1]
    return starts


@dataclass
class TableNumberSequence:
    curr_table_num: int = 0
    num_groups: int = 1
    group_sizes: list[int] = field(default_factory=list)
    group_table_nums: list[int] = field(default_factory=list)

    @classmethod
    def from_options(cls, options: "Options") -> "TableNumberSequence":
        num_groups = int(options.num_groups or 1)
        group_sizes = [int(x) for x in (options.group_sizes or [])]
        group_table_nums = [int(x) for x in (options.group_table_nums or [])]
        if len(group_table_nums) != num_groups:
            # Counters never initialised: start every group at its boundary.
            group_table_nums = group_starts(group_sizes, num_groups) if len(group_sizes) >= num_groups - 1 else []
        return cls(
            curr_table_num=int(options.curr_table_num or 0),
            num_groups=num_groups,
            group_sizes=group_sizes,
            group_table_nums=group_table_nums,
        )

    def apply_to(self, options: "Options") -> None:
        # Fresh list objects so the JSON columns are seen as modified.
        options.curr_table_num = self.curr_table_num
        options.group_table_nums = list(self.group_table_nums)

    def reset(self) -> None:
        self.curr_table_num = 0
        self.group_table_nums = group_starts(self.group_sizes, self.num_groups)

    def next_incr(self) -> int:
        num = self.curr_table_num
        self.curr_table_num += 1
        return num

    def catch_up(self, locations: Iterable[int], *, relayout: bool = False) -> None:
        """
        Move counters past every location already in use.

        Each group counter ends up at max(start, highest taken location in the
        group's range + 1). With `relayout` the stored group counters are
        discarded first, because they were computed for a different layout.
        Counters never move backwards otherwise.
        """
        taken = [int(loc) for loc in locations]
        if taken:
            self.curr_table_num = max(self.curr_table_num, max(taken) + 1)
        if len(self.group_sizes) < self.num_groups - 1:
            return
        starts = group_starts(self.group_sizes, self.num_groups)
        if relayout or len(self.group_table_nums) != self.num_groups:
            self.group_table_nums = list(starts)
        for group, start in enumerate(starts):
            end = self._group_end(group)
            in_range = [loc for loc in taken if loc >= start and (end is None or loc < end)]
            floor = max(in_range) + 1 if in_range else start
            self.group_table_nums[group] = max(self.group_table_nums[group], floor)

    def _group_end(self, group: int) -> int | None:
        if group >= self.num_groups - 1:
            return None
        return group_starts(self.group_sizes, self.num_groups)[group + 1]

    def next_group(self) -> tuple[int, int]:
        """(group, table) for the next project; first group with room wins."""
        for group in range(self.num_groups):
            end = self._group_end(group)
            if end is None or self.group_table_nums[group] < end:
                table = self.group_table_nums[group]
                self.group_table_nums[group] = table + 1
                return group, table
        raise RuntimeError("no group accepted a table number")  # pragma: no cover - last group is unbounded


def sort_by_table_number(projects: Iterable[Numbered]) -> list[Numbered]:
    return sorted(projects, key=lambda p: (p.location, p.id if p.id is not None else 0))


def assign_in_order(projects: Iterable[Numbered], seq: TableNumberSequence) -> list[Numbered]:
    ordered = sort_by_table_number(projects)
    seq.curr_table_num = 0
    for project in ordered:
        project.location = seq.next_incr()
    return ordered


def assign_by_group(projects: Iterable[Numbered], seq: TableNumberSequence) -> list[Numbered]:
    ordered = sort_by_table_number(projects)
    seq.reset()
    for project in ordered:
        project.group, project.location = seq.next_group()
    return ordered
