from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .expression import Substituter


class Operator(StrEnum):
    EQUAL = "EQ"
    NOT_EQUAL = "NE"
    LESS = "LT"
    LESS_OR_EQUAL = "LE"
    GREATER = "GT"
    GREATER_OR_EQUAL = "GE"
    BEGINS_WITH = "BEGINS_WITH"
    BETWEEN = "BETWEEN"


class Order(Enum):
    ASCENDING = True
    DESCENDING = False

    @property
    def scan_forward(self) -> bool:
        return self.value

    @property
    def label(self) -> str:
        return "ASC" if self.value else "DESC"


_COMPARISONS = {
    Operator.EQUAL: "=",
    Operator.NOT_EQUAL: "<>",
    Operator.LESS: "<",
    Operator.LESS_OR_EQUAL: "<=",
    Operator.GREATER: ">",
    Operator.GREATER_OR_EQUAL: ">=",
}


@dataclass(frozen=True)
class KeyCondition:
    operator: Operator
    values: tuple[dict[str, Any], ...]


def build_key_conditions(
    hash_key: str,
    hash_value: dict[str, Any],
    range_key: str | None = None,
    range_op: Operator | None = None,
    range_values: Sequence[dict[str, Any]] = (),
) -> dict[str, KeyCondition]:
    conds = {hash_key: KeyCondition(operator=Operator.EQUAL, values=(hash_value,))}
    if range_key and range_op is not None:
        conds[range_key] = KeyCondition(operator=range_op, values=tuple(range_values))
    return conds


def render_key_condition(conditions: dict[str, KeyCondition], sub: Substituter) -> str:
    parts: list[str] = []
    for name, cond in conditions.items():
        ref = sub.sub_name(name)
        values = [sub.sub_value(v) for v in cond.values]

        # arity is not checked here; the service rejects malformed conditions
        if cond.operator is Operator.BETWEEN:
            parts.append(f"{ref} BETWEEN " + " AND ".join(values))
        elif cond.operator is Operator.BEGINS_WITH:
            parts.append(f"begins_with({ref}, " + ", ".join(values) + ")")
        else:
            parts.append(f"{ref} {_COMPARISONS[cond.operator]} " + ", ".join(values))
    return " AND ".join(parts)
