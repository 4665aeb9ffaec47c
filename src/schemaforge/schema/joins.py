"""Join expressions attached to relationship methods.

A join is one equality condition (`Phone.user_id = User.id`) or two joined by
AND, where the second form always describes a pivot table sitting between the
two entities (`User.id = role_user.user_id AND role_user.role_id = Role.id`).
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass

from schemaforge.exceptions import JoinSyntaxError

_NAME = r"[A-Za-z0-9_]+"


def _condition(prefix: str) -> str:
    return (
        rf"(?P<{prefix}_l_table>{_NAME})\.(?P<{prefix}_l_field>{_NAME})\s*=\s*"
        rf"(?P<{prefix}_r_table>{_NAME})\.(?P<{prefix}_r_field>{_NAME})"
    )


_JOIN_RE = re.compile(rf"^\s*{_condition('c1')}(?:\s+AND\s+{_condition('c2')})?\s*$")

_PIVOT_SHAPE_MESSAGE = (
    'Joins with "AND" are currently used only for many-to-many relations '
    "and so should reference the same table twice, like this: "
    '"table1.X = table2.Y AND table2.Z = table3.A" '
    'see: "{join}"'
)


@dataclass(frozen=True)
class JoinCondition:
    """`left_table.left_field = right_table.right_field`."""

    left_table: str
    left_field: str
    right_table: str
    right_field: str


@dataclass(frozen=True)
class JoinPair:
    """A condition read from one side: table1.field1 is joined to table2.field2."""

    table1: str
    field1: str
    table2: str
    field2: str


@dataclass(frozen=True)
class JoinExpression:
    """Parsed and validated join expression."""

    raw: str
    first: JoinCondition
    second: JoinCondition | None = None

    @property
    def is_pivot(self) -> bool:
        """Two-condition joins go through a pivot table."""
        return self.second is not None

    @property
    def pivot_table(self) -> str:
        """Table (or entity) name on the right of the first condition."""
        return self.first.right_table

    def field_in(self, table: str) -> str | None:
        """Field the first condition references on `table`, if any."""
        if self.first.left_table == table:
            return self.first.left_field
        if self.first.right_table == table:
            return self.first.right_field
        return None

    def pairs(self) -> list[JoinPair]:
        """Every condition read in both directions, first condition first."""
        result = []
        for cond in (self.first, self.second):
            if cond is None:
                continue
            result.append(
                JoinPair(cond.left_table, cond.left_field, cond.right_table, cond.right_field)
            )
            result.append(
                JoinPair(cond.right_table, cond.right_field, cond.left_table, cond.left_field)
            )
        return result

    def __str__(self) -> str:
        return self.raw


def parse_join(raw: str) -> JoinExpression:
    """Parse a join string.

    Raises:
        JoinSyntaxError: If the text is not one or two conditions, or if a two
            condition join does not reference exactly one table twice
    """
    match = _JOIN_RE.match(raw)
    if match is None:
        raise JoinSyntaxError(raw)

    groups = match.groupdict()
    first = JoinCondition(
        groups["c1_l_table"], groups["c1_l_field"], groups["c1_r_table"], groups["c1_r_field"]
    )
    if groups["c2_l_table"] is None:
        return JoinExpression(raw, first)

    second = JoinCondition(
        groups["c2_l_table"], groups["c2_l_field"], groups["c2_r_table"], groups["c2_r_field"]
    )
    tables = [
        first.left_table,
        first.right_table,
        second.left_table,
        second.right_table,
    ]
    if sorted(Counter(tables).values()) != [1, 1, 2]:
        raise JoinSyntaxError(raw, _PIVOT_SHAPE_MESSAGE.format(join=raw))

    return JoinExpression(raw, first, second)
