"""
ISMS item aggregation.

Merges the two record sources into one entry per ISMS control identifier:

    UserSelectedDocuments (policy selections)  ─┐
                                                ├─► AggregateItem per ISMS id
    Evidence_Metadata (evidence files)         ─┘

Usage:
    from isms_export.services.aggregator import aggregate
    items = aggregate(policy_items, evidence_items)   # sorted by ISMS id
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from isms_export.services.isms_id import clean_text, compare_isms_ids, isms_sort_key

logger = logging.getLogger(__name__)

REASON_FIELD_PREFIX = "reason"


# ═════════════════════════════════════════════════════════════════════════════
# Input records
# ═════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PolicyRecord:
    """One row of the policy-selection table."""
    isms_id: str
    content: str = ""
    full_path: str = ""

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> PolicyRecord:
        return cls(
            isms_id=clean_text(item.get("ISMSID")),
            content=clean_text(item.get("Content")),
            full_path=clean_text(item.get("full_path")),
        )


@dataclass(frozen=True)
class EvidenceRecord:
    """One row of the evidence-metadata table.

    ``reasons`` holds the ``reason1``, ``reason2``, ... attributes in order.
    Enumeration stops at the first missing (or empty) index, so a populated
    ``reason4`` after a missing ``reason3`` is never read.
    """
    isms_id: str
    file_name: str = ""
    reasons: tuple[str, ...] = ()

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> EvidenceRecord:
        return cls(
            isms_id=clean_text(item.get("ISMSItem")),
            file_name=clean_text(item.get("FileName")),
            reasons=tuple(extract_reasons(item)),
        )


def extract_reasons(item: Mapping[str, Any]) -> list[str]:
    """Return the trimmed ``reasonN`` values of an evidence item, "none" dropped."""
    reasons: list[str] = []
    index = 1
    while item.get(f"{REASON_FIELD_PREFIX}{index}"):
        reason = clean_text(item[f"{REASON_FIELD_PREFIX}{index}"])
        if reason:
            reasons.append(reason)
        index += 1
    return reasons


# ═════════════════════════════════════════════════════════════════════════════
# Aggregate
# ═════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AggregateItem:
    """Everything known about one ISMS control, ready to be written to a row.

    Immutable: the same list is read by both sheet-mapping tasks.
    """
    isms_id: str
    contents: tuple[str, ...] = ()
    policies: tuple[str, ...] = ()
    evidences: tuple[str, ...] = ()
    reasons: tuple[tuple[str, tuple[str, ...]], ...] = ()

    def to_dict(self) -> dict:
        return {
            "isms_id": self.isms_id,
            "contents": list(self.contents),
            "policies": list(self.policies),
            "evidences": list(self.evidences),
            "reasons": [[name, list(values)] for name, values in self.reasons],
        }


@dataclass
class _Accumulator:
    # dict keys double as insertion-ordered sets
    isms_id: str
    contents: dict[str, None] = field(default_factory=dict)
    policies: dict[str, None] = field(default_factory=dict)
    evidences: dict[str, None] = field(default_factory=dict)
    reasons: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def freeze(self) -> AggregateItem:
        return AggregateItem(
            isms_id=self.isms_id,
            contents=tuple(self.contents),
            policies=tuple(self.policies),
            evidences=tuple(self.evidences),
            reasons=tuple(self.reasons.items()),
        )


class _Grouper:
    """Identifier → accumulator map with fetch-or-create semantics.

    Keyed by the canonical identifier, so "2.1" and "2.1.0" land in the same
    accumulator (the first spelling seen is kept for display).
    """

    def __init__(self) -> None:
        self._groups: dict[tuple[int, ...], _Accumulator] = {}

    def get(self, isms_id: str) -> _Accumulator:
        key = isms_sort_key(isms_id)
        acc = self._groups.get(key)
        if acc is None:
            acc = _Accumulator(isms_id=isms_id)
            self._groups[key] = acc
        elif acc.isms_id != isms_id:
            logger.warning(
                "ISMS ids %r and %r are equivalent; merging into %r",
                acc.isms_id, isms_id, acc.isms_id,
            )
        return acc

    def freeze(self) -> list[AggregateItem]:
        return [acc.freeze() for acc in self._groups.values()]


def aggregate(
    policy_items: Iterable[Mapping[str, Any]] | None,
    evidence_items: Iterable[Mapping[str, Any]] | None,
) -> list[AggregateItem]:
    """Group policy and evidence items by ISMS id.

    Items without an identifier are skipped. The result is sorted by the
    hierarchical identifier order.
    """
    grouper = _Grouper()
    skipped = 0

    for item in policy_items or ():
        record = PolicyRecord.from_item(item)
        if not record.isms_id:
            skipped += 1
            continue
        acc = grouper.get(record.isms_id)
        if record.content:
            acc.contents[record.content] = None
        if record.full_path:
            acc.policies[record.full_path] = None

    for item in evidence_items or ():
        record = EvidenceRecord.from_item(item)
        if not record.isms_id:
            skipped += 1
            continue
        acc = grouper.get(record.isms_id)
        if record.file_name:
            acc.evidences[record.file_name] = None
            if record.reasons:
                acc.reasons[record.file_name] = record.reasons

    if skipped:
        logger.debug("Skipped %d records without an ISMS id", skipped)

    items = grouper.freeze()
    items.sort(key=functools.cmp_to_key(lambda a, b: compare_isms_ids(a.isms_id, b.isms_id)))
    return items
