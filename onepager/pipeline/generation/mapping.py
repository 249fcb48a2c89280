"""Column to placeholder mapping resolution.

A mapping rule pairs a source key (a CSV column name or a reserved token
such as the current date) with the exact placeholder tag to search for in a
template. The effective mapping of a run is built from three inputs:

1. the built-in default rules,
2. the user's rules, which override defaults with the same source key,
3. an implicit fallback rule ``column -> <<column>>`` for every column of
   the record schema that no rule mentions.

Rules are kept as an ordered association list rather than a dict merge so
precedence is explicit: the last rule written for a key wins, and it keeps
the position of the first rule written for that key.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field

from onepager.config import (
    CLIENT_NAME_COLUMN,
    CLIENT_NAME_TOKEN,
    DATE_TOKEN,
    DEFAULT_DATE_FORMAT,
    DEFAULT_MAPPING_RULES,
    PLACEHOLDER_CLOSE,
    PLACEHOLDER_OPEN,
    PREVIOUS_YEAR_TAG_FORMAT,
)
from onepager.exceptions import MappingRuleError


@dataclass(frozen=True)
class MappingRule:
    """One ``source_key -> placeholder_tag`` rule."""

    source_key: str
    placeholder_tag: str


RuleLike = MappingRule | tuple[str, str]


def fallback_tag(column: str) -> str:
    """Return the implicit placeholder tag of a column.

    Examples
    --------
    >>> fallback_tag("Org ID")
    '<<Org ID>>'
    """
    return f"{PLACEHOLDER_OPEN}{column}{PLACEHOLDER_CLOSE}"


def _as_rule(rule: RuleLike) -> MappingRule:
    if isinstance(rule, MappingRule):
        return rule
    source_key, placeholder_tag = rule
    return MappingRule(str(source_key), str(placeholder_tag))


def rules_from_mapping(mapping: Mapping[str, str]) -> list[MappingRule]:
    """Convert a ``{column: tag}`` mapping into rules, keeping its order."""
    return [MappingRule(key, tag) for key, tag in mapping.items()]


def default_rules() -> list[MappingRule]:
    """Return the built-in rules from :mod:`onepager.config`."""
    return [_as_rule(rule) for rule in DEFAULT_MAPPING_RULES]


@dataclass(frozen=True)
class EffectiveMapping:
    """Resolved, ordered rule list of one generation run.

    Attributes
    ----------
    rules : tuple[MappingRule, ...]
        Rules in precedence position order, source keys unique.
    fallback_keys : frozenset[str]
        Source keys whose rule was synthesized from the schema.
    """

    rules: tuple[MappingRule, ...]
    fallback_keys: frozenset[str] = field(default_factory=frozenset)

    def __iter__(self) -> Iterator[MappingRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __contains__(self, source_key: object) -> bool:
        return any(rule.source_key == source_key for rule in self.rules)

    @property
    def source_keys(self) -> list[str]:
        """Source keys in rule order."""
        return [rule.source_key for rule in self.rules]

    def tag_for(self, source_key: str) -> str | None:
        """Return the tag mapped from ``source_key``, or None."""
        for rule in self.rules:
            if rule.source_key == source_key:
                return rule.placeholder_tag
        return None

    def as_dict(self) -> dict[str, str]:
        """Return the rules as an insertion-ordered ``{source_key: tag}`` dict."""
        return {rule.source_key: rule.placeholder_tag for rule in self.rules}


def _validate_user_rule(rule: MappingRule) -> None:
    if not rule.source_key:
        raise MappingRuleError(
            "Mapping rule has an empty source key",
            context={"placeholder_tag": rule.placeholder_tag},
        )
    if not rule.placeholder_tag:
        raise MappingRuleError(
            f"Mapping rule for {rule.source_key!r} has an empty placeholder tag",
            context={"source_key": rule.source_key},
        )


def resolve(
    default: Iterable[RuleLike] | None,
    user: Iterable[RuleLike] | None,
    schema: Sequence[str],
) -> EffectiveMapping:
    """Merge default and user rules, then add a fallback rule per column.

    Parameters
    ----------
    default : Iterable[RuleLike] | None
        Built-in rules; ``None`` means :func:`default_rules`.
    user : Iterable[RuleLike] | None
        User rules applied in order; each overwrites any earlier rule with
        the same source key.
    schema : Sequence[str]
        Ordered column names of the record set.

    Returns
    -------
    EffectiveMapping
        Every schema column appears as a source key.

    Raises
    ------
    MappingRuleError
        If a user rule has an empty source key or placeholder tag.

    Examples
    --------
    >>> m = resolve([("A", "<<X>>")], [("A", "<<Y>>")], ["A", "B"])
    >>> m.as_dict()
    {'A': '<<Y>>', 'B': '<<B>>'}
    """
    default_list = default_rules() if default is None else [_as_rule(r) for r in default]
    user_list = [_as_rule(r) for r in (user or ())]
    for rule in user_list:
        _validate_user_rule(rule)

    merged: list[MappingRule] = []
    positions: dict[str, int] = {}
    for rule in [*default_list, *user_list]:
        position = positions.get(rule.source_key)
        if position is None:
            positions[rule.source_key] = len(merged)
            merged.append(rule)
        else:
            merged[position] = rule

    fallback_keys: set[str] = set()
    for column in schema:
        if column in positions:
            continue
        positions[column] = len(merged)
        merged.append(MappingRule(column, fallback_tag(column)))
        fallback_keys.add(column)

    return EffectiveMapping(rules=tuple(merged), fallback_keys=frozenset(fallback_keys))


def build_substitution_context(
    mapping: EffectiveMapping,
    record: Mapping[str, str],
    previous_record: Mapping[str, str] | None = None,
    *,
    today: dt.date | None = None,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> dict[str, str]:
    """Build the ``placeholder_tag -> value`` mapping for one job.

    Rules whose source column is absent from ``record`` are skipped, so a
    lookup never fails. Fallback tags also get an uppercase alias
    (``<<ORG ID>>`` for ``<<Org ID>>``) unless a rule already owns that
    text. Previous-year values are exposed as ``<<column (N-1)>>``.

    Examples
    --------
    >>> m = resolve([], [], ["Name"])
    >>> build_substitution_context(m, {"Name": "Acme"})
    {'<<Name>>': 'Acme', '<<NAME>>': 'Acme'}
    """
    today = today or dt.date.today()
    explicit_tags = {rule.placeholder_tag for rule in mapping}
    context: dict[str, str] = {}
    for rule in mapping:
        if rule.source_key == DATE_TOKEN:
            value = today.strftime(date_format)
        elif rule.source_key == CLIENT_NAME_TOKEN:
            value = record.get(CLIENT_NAME_COLUMN, "")
        elif rule.source_key in record:
            value = record[rule.source_key]
        else:
            continue
        context[rule.placeholder_tag] = value
        if rule.source_key in mapping.fallback_keys:
            alias = fallback_tag(rule.source_key.upper())
            if alias not in explicit_tags:
                context.setdefault(alias, value)

    if previous_record is not None:
        for column, value in previous_record.items():
            context.setdefault(PREVIOUS_YEAR_TAG_FORMAT.format(column=column), value)
    return context
