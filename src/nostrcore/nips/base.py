"""
Shared base class for relay-supplied document models.

See Also:
    [nostrcore.nips.parsing][nostrcore.nips.parsing]: The declarative field
        parsing engine used by [BaseData][nostrcore.nips.base.BaseData].
    [nostrcore.nips.nip11][nostrcore.nips.nip11]: NIP-11 models built on it.
"""

from __future__ import annotations

from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict

from .parsing import FieldSpec, parse_fields


class BaseData(BaseModel):
    """Frozen Pydantic model with lenient parsing for untrusted input.

    Subclasses declare ``_FIELD_SPEC``. [parse()][nostrcore.nips.base.BaseData.parse]
    turns a raw dictionary into constructor arguments, silently dropping
    invalid values; [from_raw()][nostrcore.nips.base.BaseData.from_raw] builds
    an instance from it. [from_dict()][nostrcore.nips.base.BaseData.from_dict]
    is the strict path for trusted data such as YAML configuration.

    Subclasses with nested objects override ``parse()``.
    """

    model_config = ConfigDict(frozen=True)

    _FIELD_SPEC: ClassVar[FieldSpec] = FieldSpec()

    @classmethod
    def parse(cls, data: Any) -> dict[str, Any]:
        """Parse arbitrary data into validated constructor arguments."""
        if not isinstance(data, dict):
            return {}
        return parse_fields(data, cls._FIELD_SPEC)

    @classmethod
    def from_raw(cls, data: Any) -> Self:
        """Build an instance from untrusted data, dropping what does not fit."""
        return cls.model_validate(cls.parse(data))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create an instance from a dictionary with strict validation."""
        return cls.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary, excluding fields with ``None`` values."""
        return self.model_dump(exclude_none=True, mode="json")
