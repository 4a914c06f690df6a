"""
Domain models for template resources and the diff between two templates.
"""
from typing import List, Dict, Any
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ResourceWithId:
    """A template resource with its logical ID."""
    logical_id: str
    resource_type: str
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceWithId":
        """
        Build a resource from its JSON form.

        Args:
            data: Mapping with 'logicalId', 'type' and optional 'properties'

        Returns:
            ResourceWithId instance

        Raises:
            ValueError: If the logical ID or type is missing
        """
        logical_id = data.get("logicalId") or data.get("logical_id")
        resource_type = data.get("type") or data.get("resource_type")
        if not logical_id or not resource_type:
            raise ValueError("Resource requires both 'logicalId' and 'type'")
        return cls(
            logical_id=logical_id,
            resource_type=resource_type,
            properties=dict(data.get("properties") or {}),
        )


@dataclass(frozen=True)
class ModifiedResource:
    """A resource present in both templates with changed properties."""
    logical_id: str
    resource_type: str
    old_properties: Dict[str, Any] = field(default_factory=dict)
    new_properties: Dict[str, Any] = field(default_factory=dict)

    def before(self) -> ResourceWithId:
        return ResourceWithId(self.logical_id, self.resource_type, self.old_properties)

    def after(self) -> ResourceWithId:
        return ResourceWithId(self.logical_id, self.resource_type, self.new_properties)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModifiedResource":
        logical_id = data.get("logicalId") or data.get("logical_id")
        resource_type = data.get("type") or data.get("resource_type")
        if not logical_id or not resource_type:
            raise ValueError("Modified resource requires both 'logicalId' and 'type'")
        return cls(
            logical_id=logical_id,
            resource_type=resource_type,
            old_properties=dict(data.get("oldProperties") or data.get("old_properties") or {}),
            new_properties=dict(data.get("newProperties") or data.get("new_properties") or {}),
        )


@dataclass(frozen=True)
class ResourceDiff:
    """Added, removed and modified resources between a base and a target template."""
    added: List[ResourceWithId] = field(default_factory=list)
    removed: List[ResourceWithId] = field(default_factory=list)
    modified: List[ModifiedResource] = field(default_factory=list)

    def resource_count(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceDiff":
        """Build a diff from its JSON form ({'added': [...], 'removed': [...], 'modified': [...]})."""
        return cls(
            added=[ResourceWithId.from_dict(item) for item in data.get("added") or []],
            removed=[ResourceWithId.from_dict(item) for item in data.get("removed") or []],
            modified=[ModifiedResource.from_dict(item) for item in data.get("modified") or []],
        )
