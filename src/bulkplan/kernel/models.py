"""Pydantic models for import items with strict validation."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .key_cache import normalize_key


class PropertyCell(BaseModel):
    """One property of a raw row, already split from its column header.

    Header ``heroImage|urlToMedia:1234`` with cell ``https://x/y.jpg`` becomes
    column_name="heroImage", resolver_alias="urlToMedia", alias_parameter="1234".
    """
    column_name: str
    resolver_alias: str = "text"
    alias_parameter: Optional[str] = None
    raw_value: Any = None

    model_config = ConfigDict(frozen=True)

    @property
    def resolver_spec(self) -> str:
        """Alias with its parameter re-attached, as accepted by the registry."""
        if self.alias_parameter:
            return f"{self.resolver_alias}:{self.alias_parameter}"
        return self.resolver_alias


class DeferredProperty(BaseModel):
    """A property whose final value waits for referenced items to be created."""
    raw_value: Any = None
    resolver_alias: str
    alias_parameter: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def resolver_spec(self) -> str:
        if self.alias_parameter:
            return f"{self.resolver_alias}:{self.alias_parameter}"
        return self.resolver_alias


def _blank_to_none(v: Any) -> Optional[str]:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


class ImportItem(BaseModel):
    """One row's resolved intent to create an entity."""
    name: str = ""
    content_type_alias: str = ""
    parent: Optional[str] = None  # ID, GUID or folder path; not interpreted here
    legacy_id: Optional[str] = None
    legacy_parent_id: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    deferred_properties: Dict[str, DeferredProperty] = Field(default_factory=dict)
    dependencies: List[str] = Field(
        default_factory=list,
        description="Legacy IDs the deferred properties depend on (deduplicated, case-insensitive, ordered)",
    )
    source_name: Optional[str] = None
    should_publish: bool = False
    content_guid: Optional[UUID] = None  # existing entity to update
    parent_guid: Optional[UUID] = None  # entity to move the item under

    model_config = ConfigDict(extra="forbid")

    @field_validator("legacy_id", "legacy_parent_id", mode="before")
    @classmethod
    def validate_legacy_reference(cls, v: Any) -> Optional[str]:
        """Blank or whitespace-only legacy references mean "no reference"."""
        return _blank_to_none(v)

    @field_validator("content_guid", "parent_guid", mode="before")
    @classmethod
    def validate_guid(cls, v: Any) -> Any:
        return None if isinstance(v, str) and not v.strip() else v

    @field_validator("dependencies", mode="before")
    @classmethod
    def validate_dependencies(cls, v: Any) -> List[str]:
        """Canonicalize dependencies to an ordered, case-insensitive set.

        Blank entries are dropped, entries are stripped and the first spelling
        of each ID wins. Declaration order is kept so graph edges stay
        deterministic.
        """
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        seen = set()
        result = []
        for entry in v:
            dep = _blank_to_none(entry)
            if dep is None:
                continue
            key = normalize_key(dep)
            if key in seen:
                continue
            seen.add(key)
            result.append(dep)
        return result

    @property
    def has_legacy_id(self) -> bool:
        return self.legacy_id is not None

    @property
    def display_name(self) -> str:
        """Name used in diagnostics."""
        return self.name or self.legacy_id or "<unnamed>"

    def references(self) -> List[str]:
        """Parent reference (if any) followed by dependencies, as declared."""
        refs = []
        if self.legacy_parent_id:
            refs.append(self.legacy_parent_id)
        refs.extend(self.dependencies)
        return refs
