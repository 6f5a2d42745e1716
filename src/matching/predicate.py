import operator
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Tuple

from sqlalchemy import or_

OPERATORS = {
    '>=': operator.ge,
    '<=': operator.le,
    '==': operator.eq,
}


def field_value(record: Any, field: str) -> Any:
    """Read a field from an ORM row or a plain mapping"""
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


class Clause:
    """One conjunct of a compiled predicate."""

    def matches(self, record: Any) -> bool:
        raise NotImplementedError

    def to_sql(self, model):
        """SQLAlchemy condition equivalent to matches(), or None if the clause
        can only be evaluated in Python."""
        return None


@dataclass(frozen=True)
class Compare(Clause):
    field: str
    op: str
    value: Any

    def matches(self, record):
        actual = field_value(record, self.field)
        if actual is None:
            return False
        if isinstance(actual, datetime) and isinstance(self.value, date) and not isinstance(self.value, datetime):
            actual = actual.date()
        return OPERATORS[self.op](actual, self.value)

    def to_sql(self, model):
        return OPERATORS[self.op](getattr(model, self.field), self.value)


@dataclass(frozen=True)
class MemberOf(Clause):
    field: str
    values: Tuple[Any, ...]

    def matches(self, record):
        return field_value(record, self.field) in self.values

    def to_sql(self, model):
        return getattr(model, self.field).in_(self.values)


@dataclass(frozen=True)
class ContainsText(Clause):
    """
    Case-insensitive match of any token anywhere in a text field.

    Evaluated in Python only: SQLite lower() and LIKE fold ASCII letters
    only, so a SQL rendering would drop non-ASCII matches.
    """
    field: str
    tokens: Tuple[str, ...]

    def matches(self, record):
        actual = field_value(record, self.field)
        if not isinstance(actual, str):
            return False
        haystack = actual.lower()
        return any(token.lower() in haystack for token in self.tokens)


@dataclass(frozen=True)
class ContainsAll(Clause):
    """Collection field must hold every one of values"""
    field: str
    values: Tuple[Any, ...]

    def matches(self, record):
        actual = field_value(record, self.field) or []
        return set(self.values).issubset(actual)


@dataclass(frozen=True)
class AnyOf(Clause):
    clauses: Tuple[Clause, ...]

    def matches(self, record):
        return any(clause.matches(record) for clause in self.clauses)

    def to_sql(self, model):
        conditions = [clause.to_sql(model) for clause in self.clauses]
        if any(condition is None for condition in conditions):
            return None
        return or_(*conditions)


@dataclass(frozen=True)
class Predicate:
    """Conjunction of clauses; an empty predicate matches every record."""
    clauses: Tuple[Clause, ...] = ()

    def matches(self, record: Any) -> bool:
        return all(clause.matches(record) for clause in self.clauses)

    def sql_conditions(self, model) -> List:
        conditions = []
        for clause in self.clauses:
            condition = clause.to_sql(model)
            if condition is not None:
                conditions.append(condition)
        return conditions

    def __len__(self):
        return len(self.clauses)


def evaluate(predicate: Predicate, record: Any) -> bool:
    return predicate.matches(record)
