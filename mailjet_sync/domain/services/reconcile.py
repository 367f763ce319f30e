"""
Pure reconciliation core: desired catalog vs. remote listing.

No I/O here. The service layer feeds in remote records and issues the
create/update/delete calls from the returned plan.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Hashable, Iterable, Mapping, TypeVar

K = TypeVar("K", bound=Hashable)
D = TypeVar("D")
R = TypeVar("R")


@dataclass
class ReconcilePlan(Generic[K, D, R]):
    """Remote writes needed to close the gap"""

    to_create: list[tuple[K, D]] = field(default_factory=list)
    to_update: list[tuple[R, D]] = field(default_factory=list)
    to_delete: list[R] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)


def reconcile(
    desired: Mapping[K, D],
    actual: Iterable[R],
    *,
    key: Callable[[R], K],
    managed: Iterable[K] | None = None,
    is_stale: Callable[[R, D], bool] | None = None,
    additive_only: bool = False,
) -> ReconcilePlan[K, D, R]:
    """
    Diff a desired mapping against remote records.

    Args:
        desired: key -> desired state, for every key that should exist.
        actual: remote records, in listing order.
        key: extracts the key of a remote record.
        managed: keys this sync owns (defaults to the desired keys). Remote
            records with other keys are never touched.
        is_stale: returns True when a remote record must be updated to match.
        additive_only: never delete; managed keys missing from ``desired``
            are left alone.

    Only the first remote record per managed key is diffed; later
    duplicates are ignored.
    """
    managed_keys = set(managed) if managed is not None else set(desired)
    plan: ReconcilePlan[K, D, R] = ReconcilePlan()
    seen: set[K] = set()

    for record in actual:
        record_key = key(record)
        if record_key not in managed_keys or record_key in seen:
            continue
        seen.add(record_key)

        if record_key not in desired:
            if not additive_only:
                plan.to_delete.append(record)
            continue

        if is_stale is not None and is_stale(record, desired[record_key]):
            plan.to_update.append((record, desired[record_key]))

    # Missing keys follow the order of ``desired`` so creates are deterministic
    for desired_key, state in desired.items():
        if desired_key not in seen:
            plan.to_create.append((desired_key, state))

    return plan
