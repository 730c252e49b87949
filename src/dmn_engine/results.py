"""Typed result set returned by decision evaluation.

A ResultSet is an ordered sequence of OutputEntry objects (one per retained
rule, or one aggregated entry). Each OutputEntry is an ordered sequence of
OutputValue (name, value, type_ref) triples, one per declared output column.

Both are immutable so evaluation stays a pure function from
(compiled decision, context) to result, and results can be shared freely
between threads.

Example:
    result = decision.evaluate({"season": "Fall"})
    entry = result.single_entry()
    entry["dish"]          # value by output name
    entry[0].value         # value by position
    result.collect("dish") # one value per entry
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, overload

from dmn_engine.exceptions import DmnEvaluationError

__all__ = [
    "OutputValue",
    "OutputEntry",
    "ResultSet",
]


@dataclass(frozen=True)
class OutputValue:
    """A single named, typed output value.

    Attributes:
        name: Output column name.
        value: Evaluated value, already coerced to type_ref.
        type_ref: Declared typeRef of the column, if any.
    """

    name: str
    value: Any
    type_ref: str | None = None


class OutputEntry:
    """One row of typed output values, in declared column order."""

    __slots__ = ("_values",)

    def __init__(self, values: tuple[OutputValue, ...] | list[OutputValue] = ()) -> None:
        object.__setattr__(self, "_values", tuple(values))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("OutputEntry is immutable")

    @overload
    def __getitem__(self, key: int) -> OutputValue: ...

    @overload
    def __getitem__(self, key: str) -> Any: ...

    def __getitem__(self, key: int | str) -> Any:
        """Index by position (returns OutputValue) or by name (returns the raw value)."""
        if isinstance(key, str):
            for output in self._values:
                if output.name == key:
                    return output.value
            raise KeyError(key)
        return self._values[key]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[OutputValue]:
        return iter(self._values)

    def __contains__(self, name: object) -> bool:
        return any(output.name == name for output in self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OutputEntry):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        return f"OutputEntry({self.to_dict()!r})"

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value of the named output, or default if absent."""
        try:
            return self[name]
        except KeyError:
            return default

    def names(self) -> list[str]:
        return [output.name for output in self._values]

    def values(self) -> list[Any]:
        return [output.value for output in self._values]

    def to_dict(self) -> dict[str, Any]:
        """Return {name: value} in column order."""
        return {output.name: output.value for output in self._values}

    def single_value(self) -> OutputValue:
        """Return the only value of this entry.

        Raises:
            DmnEvaluationError: If the entry does not hold exactly one value.
        """
        if len(self._values) != 1:
            raise DmnEvaluationError(f"Expected a single output value but the entry has {len(self._values)}.")
        return self._values[0]


class ResultSet:
    """Ordered, immutable sequence of output entries."""

    __slots__ = ("_entries",)

    def __init__(self, entries: tuple[OutputEntry, ...] | list[OutputEntry] = ()) -> None:
        object.__setattr__(self, "_entries", tuple(entries))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ResultSet is immutable")

    def __getitem__(self, index: int) -> OutputEntry:
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[OutputEntry]:
        return iter(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResultSet):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"ResultSet({self.to_list()!r})"

    @property
    def outputs(self) -> list[OutputEntry]:
        """All entries as a list."""
        return list(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def first(self) -> OutputEntry | None:
        """Return the first entry, or None if the result is empty."""
        return self._entries[0] if self._entries else None

    def single_entry(self) -> OutputEntry | None:
        """Return the only entry, or None if the result is empty.

        Raises:
            DmnEvaluationError: If the result holds more than one entry.
        """
        if len(self._entries) > 1:
            raise DmnEvaluationError(f"Expected at most one output entry but the result has {len(self._entries)}.")
        return self.first()

    def single_value(self) -> Any:
        """Return the raw value of a single-entry, single-value result, or None if empty."""
        entry = self.single_entry()
        if entry is None:
            return None
        return entry.single_value().value

    def collect(self, name: str) -> list[Any]:
        """Return the named output's value from every entry that has it."""
        return [entry[name] for entry in self._entries if name in entry]

    def to_list(self) -> list[dict[str, Any]]:
        """Return the result as a list of {name: value} dicts."""
        return [entry.to_dict() for entry in self._entries]
