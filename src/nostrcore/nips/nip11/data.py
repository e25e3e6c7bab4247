"""
NIP-11 relay information document models.

The document is the relay's self-description: identity, supported NIPs and,
most importantly for the engine, the ``limitation`` object that bounds what a
client may send. Clients read it to avoid requests the relay would refuse;
relays publish it and enforce it with
[FilterPolicy][nostrcore.protocol.policy.FilterPolicy].

Fetching the document over HTTP is a transport concern and not handled here.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import ConfigDict, Field, StrictBool, StrictInt

from nostrcore.nips.base import BaseData
from nostrcore.nips.parsing import FieldSpec, parse_fields, residual_fields


KindRange = tuple[StrictInt, StrictInt]


class RelayLimitation(BaseData):
    """Server-imposed limits. Every field is optional; ``None`` means unlimited."""

    max_message_length: StrictInt | None = None
    max_subscriptions: StrictInt | None = None
    max_filters: StrictInt | None = None
    max_limit: StrictInt | None = None
    max_subid_length: StrictInt | None = None
    min_prefix: StrictInt | None = None
    max_event_tags: StrictInt | None = None
    max_content_length: StrictInt | None = None
    min_pow_difficulty: StrictInt | None = None
    auth_required: StrictBool | None = None
    payment_required: StrictBool | None = None
    restricted_writes: StrictBool | None = None
    created_at_lower_limit: StrictInt | None = None
    created_at_upper_limit: StrictInt | None = None
    default_limit: StrictInt | None = None

    _FIELD_SPEC: ClassVar[FieldSpec] = FieldSpec(
        int_fields=frozenset(
            {
                "max_message_length",
                "max_subscriptions",
                "max_filters",
                "max_limit",
                "max_subid_length",
                "min_prefix",
                "max_event_tags",
                "max_content_length",
                "min_pow_difficulty",
                "created_at_lower_limit",
                "created_at_upper_limit",
                "default_limit",
            }
        ),
        bool_fields=frozenset({"auth_required", "payment_required", "restricted_writes"}),
    )


class RetentionEntry(BaseData):
    """One retention rule; ``kinds`` mixes single kinds and ``[start, end]`` ranges."""

    kinds: list[StrictInt | KindRange] | None = None
    time: StrictInt | None = None
    count: StrictInt | None = None

    _FIELD_SPEC: ClassVar[FieldSpec] = FieldSpec(
        int_fields=frozenset({"time", "count"}),
        nested_fields=frozenset({"kinds"}),
    )

    @classmethod
    def parse(cls, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            return {}
        result = parse_fields(data, cls._FIELD_SPEC)

        raw_kinds = data.get("kinds")
        if isinstance(raw_kinds, list):
            kinds: list[int | tuple[int, int]] = []
            for item in raw_kinds:
                if isinstance(item, int) and not isinstance(item, bool):
                    kinds.append(item)
                elif (
                    isinstance(item, list)
                    and len(item) == 2  # noqa: PLR2004 - [start, end]
                    and all(isinstance(i, int) and not isinstance(i, bool) for i in item)
                ):
                    kinds.append((item[0], item[1]))
            if kinds:
                result["kinds"] = kinds
        return result

    def covers(self, kind: int) -> bool:
        """True if the rule applies to *kind* (a rule without kinds covers all)."""
        if self.kinds is None:
            return True
        for entry in self.kinds:
            if isinstance(entry, tuple):
                if entry[0] <= kind <= entry[1]:
                    return True
            elif entry == kind:
                return True
        return False


class FeeEntry(BaseData):
    """Single fee entry (admission, subscription or publication)."""

    amount: StrictInt | None = None
    unit: str | None = None
    period: StrictInt | None = None
    kinds: list[StrictInt] | None = None

    _FIELD_SPEC: ClassVar[FieldSpec] = FieldSpec(
        int_fields=frozenset({"amount", "period"}),
        str_fields=frozenset({"unit"}),
        int_list_fields=frozenset({"kinds"}),
    )


class Fees(BaseData):
    admission: list[FeeEntry] | None = None
    subscription: list[FeeEntry] | None = None
    publication: list[FeeEntry] | None = None

    @classmethod
    def parse(cls, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            return {}
        result: dict[str, Any] = {}
        for key in ("admission", "subscription", "publication"):
            raw = data.get(key)
            if isinstance(raw, list):
                entries = [entry for entry in (FeeEntry.parse(e) for e in raw) if entry]
                if entries:
                    result[key] = entries
        return result


class RelayInformation(BaseData):
    """Complete relay information document.

    Unknown top-level keys are kept in ``extra`` and written back by
    [to_dict()][nostrcore.nips.nip11.data.RelayInformation.to_dict], so a
    document from a newer relay survives a parse/serialize cycle.

    Examples:
        ```python
        info = RelayInformation.from_raw(json.loads(body))
        info.limitation.max_filters   # 10
        info.supports(42)             # True
        ```
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str | None = None
    description: str | None = None
    banner: str | None = None
    icon: str | None = None
    pubkey: str | None = None
    self_pubkey: str | None = Field(default=None, alias="self")
    contact: str | None = None
    software: str | None = None
    version: str | None = None

    privacy_policy: str | None = None
    terms_of_service: str | None = None
    posting_policy: str | None = None
    payments_url: str | None = None

    supported_nips: list[StrictInt] | None = None
    limitation: RelayLimitation = Field(default_factory=RelayLimitation)
    retention: list[RetentionEntry] | None = None
    fees: Fees = Field(default_factory=Fees)

    relay_countries: list[str] | None = None
    language_tags: list[str] | None = None
    tags: list[str] | None = None

    extra: dict[str, Any] = Field(default_factory=dict)

    _FIELD_SPEC: ClassVar[FieldSpec] = FieldSpec(
        str_fields=frozenset(
            {
                "name",
                "description",
                "banner",
                "icon",
                "pubkey",
                "self",
                "contact",
                "software",
                "version",
                "privacy_policy",
                "terms_of_service",
                "posting_policy",
                "payments_url",
            }
        ),
        str_list_fields=frozenset({"relay_countries", "language_tags", "tags"}),
        int_list_fields=frozenset({"supported_nips"}),
        nested_fields=frozenset({"limitation", "retention", "fees"}),
    )

    @classmethod
    def parse(cls, data: Any) -> dict[str, Any]:
        """Parse a raw document, including nested objects and residual keys."""
        if not isinstance(data, dict):
            return {}
        result = parse_fields(data, cls._FIELD_SPEC)

        limitation = RelayLimitation.parse(data.get("limitation"))
        if limitation:
            result["limitation"] = limitation

        raw_retention = data.get("retention")
        if isinstance(raw_retention, list):
            entries = [e for e in (RetentionEntry.parse(r) for r in raw_retention) if e]
            if entries:
                result["retention"] = entries

        fees = Fees.parse(data.get("fees"))
        if fees:
            result["fees"] = fees

        extra = residual_fields(data, cls._FIELD_SPEC)
        if extra:
            result["extra"] = extra
        return result

    @property
    def self(self) -> str | None:
        """Relay's own public key from the ``self`` field."""
        return self.self_pubkey

    def supports(self, nip: int) -> bool:
        return self.supported_nips is not None and nip in self.supported_nips

    def to_dict(self) -> dict[str, Any]:
        """Serialize with wire names (``self``), merging ``extra`` back in."""
        result = self.model_dump(exclude_none=True, by_alias=True, mode="json", exclude={"extra"})
        for key in ("limitation", "fees"):
            if not result.get(key):
                result.pop(key, None)
        return {**self.extra, **result}
