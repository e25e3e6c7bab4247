"""
Enforcement of relay-declared request limits.

Both sides use [FilterPolicy][nostrcore.protocol.policy.FilterPolicy]: a
relay to refuse a REQ/COUNT that exceeds its published NIP-11 limitation, a
client to avoid sending one in the first place.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from nostrcore.core.exceptions import FilterRejectedError
from nostrcore.models.constants import MachineReadablePrefix
from nostrcore.models.filter import Filter
from nostrcore.nips.nip11 import RelayLimitation


class FilterPolicy:
    """Checks subscription requests against a [RelayLimitation][nostrcore.nips.nip11.data.RelayLimitation].

    Args:
        limitation: Limits to enforce; unset fields are unlimited.
        clamp_limit: When True an oversized ``limit`` is lowered to
            ``max_limit`` instead of rejected, and ``default_limit`` fills a
            missing one. Relays clamp; clients reject.
    """

    def __init__(
        self, limitation: RelayLimitation | None = None, *, clamp_limit: bool = False
    ) -> None:
        self._limitation = limitation or RelayLimitation()
        self._clamp_limit = clamp_limit

    @property
    def limitation(self) -> RelayLimitation:
        return self._limitation

    def check(
        self,
        sub_id: str,
        filters: Sequence[Filter],
        *,
        open_subscriptions: int = 0,
    ) -> tuple[Filter, ...]:
        """Validate a request and return the filters to run.

        Args:
            sub_id: Subscription id of the request.
            filters: Requested filters.
            open_subscriptions: Other subscriptions already open on the
                connection; pass 0 for COUNT or when *sub_id* replaces one.

        Raises:
            FilterRejectedError: With an ``invalid:`` reason for a malformed
                request, or ``restricted:`` for one exceeding a limit.
        """
        limits = self._limitation
        if not sub_id:
            raise FilterRejectedError(
                MachineReadablePrefix.INVALID, "subscription id must not be empty"
            )
        if limits.max_subid_length is not None and len(sub_id) > limits.max_subid_length:
            raise FilterRejectedError(
                MachineReadablePrefix.INVALID,
                f"subscription id longer than {limits.max_subid_length} characters",
            )
        if not filters:
            raise FilterRejectedError(
                MachineReadablePrefix.INVALID, "at least one filter is required"
            )
        if limits.max_filters is not None and len(filters) > limits.max_filters:
            raise FilterRejectedError(
                MachineReadablePrefix.RESTRICTED,
                f"too many filters ({len(filters)} > {limits.max_filters})",
            )
        if limits.max_subscriptions is not None and open_subscriptions >= limits.max_subscriptions:
            raise FilterRejectedError(
                MachineReadablePrefix.RESTRICTED,
                f"too many open subscriptions (max {limits.max_subscriptions})",
            )
        return tuple(self._check_filter(f) for f in filters)

    def _check_filter(self, filter_: Filter) -> Filter:
        limits = self._limitation
        if limits.min_prefix is not None:
            for prefix in (*(filter_.ids or ()), *(filter_.authors or ())):
                if len(prefix) < limits.min_prefix:
                    raise FilterRejectedError(
                        MachineReadablePrefix.RESTRICTED,
                        f"prefix {prefix!r} shorter than {limits.min_prefix} characters",
                    )

        limit = filter_.limit
        if self._clamp_limit:
            if limit is None and limits.default_limit is not None:
                limit = limits.default_limit
            if limit is not None and limits.max_limit is not None:
                limit = min(limit, limits.max_limit)
            return filter_ if limit == filter_.limit else replace(filter_, limit=limit)

        if limit is not None and limits.max_limit is not None and limit > limits.max_limit:
            raise FilterRejectedError(
                MachineReadablePrefix.RESTRICTED,
                f"limit {limit} exceeds max_limit {limits.max_limit}",
            )
        return filter_
