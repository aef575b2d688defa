"""
Registry of node types and the structural rules that govern them.

A NodeFactory maps type names to NodeTypeRules describing what a node of that
type may contain and where it may appear. Documents, transaction builders and
node tree code consult a factory instead of asking the nodes themselves, so a
private factory can be passed anywhere the default one would be used.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .constants import BUILTIN_NODE_TYPES, NODE_TYPES_ENV_VAR
from .errors import UnregisteredTypeError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeTypeRules:
    """Structural capabilities of a node type.

    Attributes:
        is_wrapped: Whether nodes of this type have opening/closing markers
        is_content: Whether the node behaves as inline content
        can_contain_content: Whether the node may directly hold content
        child_node_types: Allowed child types (None = unrestricted, [] = no children)
        parent_node_types: Allowed parent types (None = unrestricted)
        can_be_split: Whether a structural split may break this node in two
    """

    is_wrapped: bool = True
    is_content: bool = False
    can_contain_content: bool = False
    child_node_types: list[str] | None = None
    parent_node_types: list[str] | None = None
    can_be_split: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> NodeTypeRules:
        """Build rules from a mapping of field names, rejecting unknown keys.

        Raises:
            ValidationError: If the mapping has unknown keys or wrong value types
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(f"Unknown node rule keys: {', '.join(unknown)}")

        errors = []
        for key in ("is_wrapped", "is_content", "can_contain_content", "can_be_split"):
            if key in data and not isinstance(data[key], bool):
                errors.append(f"'{key}' must be a boolean")
        for key in ("child_node_types", "parent_node_types"):
            value = data.get(key)
            if value is not None and (
                not isinstance(value, list) or not all(isinstance(v, str) for v in value)
            ):
                errors.append(f"'{key}' must be a list of type names or null")
        if errors:
            raise ValidationError("Invalid node rules", errors=errors)

        values = dict(data)
        for key in ("child_node_types", "parent_node_types"):
            if values.get(key) is not None:
                values[key] = list(values[key])
        return cls(**values)


class NodeFactory:
    """Registry of node type rules.

    Example:
        >>> factory = NodeFactory()
        >>> factory.register("note", {"is_content": True, "child_node_types": []})
        >>> factory.can_node_have_children("note")
        False
    """

    def __init__(self) -> None:
        self._registry: dict[str, NodeTypeRules] = {}

    def register(self, type_name: str, rules: NodeTypeRules | Mapping[str, Any]) -> None:
        """Register (or overwrite) the rules for a node type.

        Args:
            type_name: Symbolic name of the node type
            rules: NodeTypeRules or a mapping of its field names
        """
        if not isinstance(type_name, str) or not type_name:
            raise ValidationError(f"Node type name must be a non-empty string, got {type_name!r}")
        if not isinstance(rules, NodeTypeRules):
            rules = NodeTypeRules.from_mapping(rules)
        if type_name in self._registry:
            logger.debug(f"Overwriting rules for node type '{type_name}'")
        self._registry[type_name] = rules

    def register_from_file(self, path: str | Path) -> list[str]:
        """Register node types from a YAML file.

        The file must contain a ``node_types`` mapping of type name to rules:

            ```yaml
            node_types:
              blockquote:
                can_contain_content: true
                can_be_split: true
            ```

        Args:
            path: Path to the YAML file

        Returns:
            Names of the registered types, in file order

        Raises:
            FileNotFoundError: If the file does not exist
            ValidationError: If the file cannot be parsed or has an invalid layout
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Node types file not found: {path}")

        try:
            with open(file_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to parse YAML file: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("node_types"), dict):
            raise ValidationError("Node types file must contain a 'node_types' mapping")

        registered = []
        for type_name, rules in data["node_types"].items():
            if not isinstance(rules, dict):
                raise ValidationError(f"Rules for node type '{type_name}' must be a mapping")
            self.register(type_name, rules)
            registered.append(type_name)
        logger.debug(f"Registered {len(registered)} node types from {file_path}")
        return registered

    def is_registered(self, type_name: str) -> bool:
        return type_name in self._registry

    def get_registered_types(self) -> list[str]:
        return list(self._registry)

    def get_rules(self, type_name: str) -> NodeTypeRules:
        """Get the rules for a node type.

        Raises:
            UnregisteredTypeError: If the type was never registered
        """
        try:
            return self._registry[type_name]
        except KeyError:
            raise UnregisteredTypeError(type_name) from None

    def get_child_node_types(self, type_name: str) -> list[str] | None:
        """Get the allowed child types of a node type (None if unrestricted)."""
        return self.get_rules(type_name).child_node_types

    def get_parent_node_types(self, type_name: str) -> list[str] | None:
        """Get the allowed parent types of a node type (None if unrestricted)."""
        return self.get_rules(type_name).parent_node_types

    def can_node_have_children(self, type_name: str) -> bool:
        child_types = self.get_child_node_types(type_name)
        return child_types is None or len(child_types) > 0

    def can_node_have_grandchildren(self, type_name: str) -> bool:
        """Check if a node type can have children that have children of their own.

        Content branches only hold content, and content nodes are leaves, so a
        type can have grandchildren when it can have children and cannot
        contain content.
        """
        return self.can_node_have_children(type_name) and not self.get_rules(
            type_name
        ).can_contain_content

    def can_node_contain_content(self, type_name: str) -> bool:
        return self.get_rules(type_name).can_contain_content

    def is_node_content(self, type_name: str) -> bool:
        return self.get_rules(type_name).is_content

    def is_node_wrapped(self, type_name: str) -> bool:
        return self.get_rules(type_name).is_wrapped

    def can_node_be_split(self, type_name: str) -> bool:
        return self.get_rules(type_name).can_be_split

    def is_child_allowed(self, child_type: str, parent_type: str) -> bool:
        """Check if a node of child_type may be placed directly inside parent_type.

        Both types' rules must agree, and content nodes may only go into
        nodes that can contain content (and non-content nodes only into nodes
        that cannot).
        """
        child_types = self.get_child_node_types(parent_type)
        if child_types is not None and child_type not in child_types:
            return False
        parent_types = self.get_parent_node_types(child_type)
        if parent_types is not None and parent_type not in parent_types:
            return False
        return self.is_node_content(child_type) == self.can_node_contain_content(parent_type)


def create_builtin_factory() -> NodeFactory:
    """Create a new factory with only the built-in node types registered."""
    factory = NodeFactory()
    for type_name, rules in BUILTIN_NODE_TYPES.items():
        factory.register(type_name, rules)
    return factory


_default_factory: NodeFactory | None = None


def get_default_factory() -> NodeFactory:
    """Get the process-wide default factory, creating it on first use.

    The default factory holds the built-in node types plus any types listed in
    the YAML file named by the LINEARDOC_NODE_TYPES environment variable.
    """
    global _default_factory
    if _default_factory is None:
        factory = create_builtin_factory()
        extra_path = os.environ.get(NODE_TYPES_ENV_VAR)
        if extra_path:
            logger.debug(f"Loading extra node types from {extra_path} (from env)")
            factory.register_from_file(extra_path)
        _default_factory = factory
    return _default_factory


def reset_default_factory() -> None:
    """Drop the default factory so the next lookup rebuilds it."""
    global _default_factory
    _default_factory = None
