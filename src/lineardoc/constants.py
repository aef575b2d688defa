"""
Centralized constants for node type names and built-in structure rules.

The built-in rules describe the node types every default NodeFactory knows
about. Import from here rather than repeating type names across modules.
"""

# =============================================================================
# Type Names
# =============================================================================

# Unwrapped root node spanning the whole linear data
DOCUMENT_TYPE = "document"

# Unwrapped leaf node covering a run of consecutive content items
TEXT_TYPE = "text"

# Element used to wrap inline content inserted where content is not allowed
DEFAULT_WRAPPER_TYPE = "paragraph"

# Prefix marking a closing element ({"type": "/paragraph"})
CLOSING_PREFIX = "/"


# =============================================================================
# Configuration
# =============================================================================

# Environment variable naming a YAML file with extra node type rules
NODE_TYPES_ENV_VAR = "LINEARDOC_NODE_TYPES"


# =============================================================================
# Built-in Node Types
# =============================================================================

_CONTENT_BRANCH = {
    "is_wrapped": True,
    "is_content": False,
    "can_contain_content": True,
    "child_node_types": None,
    "parent_node_types": None,
    "can_be_split": True,
}

BUILTIN_NODE_TYPES: dict[str, dict] = {
    DOCUMENT_TYPE: {
        "is_wrapped": False,
        "is_content": False,
        "can_contain_content": False,
        "child_node_types": None,
        "parent_node_types": [],
        "can_be_split": False,
    },
    "paragraph": dict(_CONTENT_BRANCH),
    "heading": dict(_CONTENT_BRANCH),
    "preformatted": dict(_CONTENT_BRANCH),
    "list": {
        "is_wrapped": True,
        "is_content": False,
        "can_contain_content": False,
        "child_node_types": ["listItem"],
        "parent_node_types": None,
        "can_be_split": False,
    },
    "listItem": {
        "is_wrapped": True,
        "is_content": False,
        "can_contain_content": False,
        "child_node_types": None,
        "parent_node_types": ["list"],
        "can_be_split": True,
    },
    "table": {
        "is_wrapped": True,
        "is_content": False,
        "can_contain_content": False,
        "child_node_types": ["tableRow"],
        "parent_node_types": None,
        "can_be_split": False,
    },
    "tableRow": {
        "is_wrapped": True,
        "is_content": False,
        "can_contain_content": False,
        "child_node_types": ["tableCell"],
        "parent_node_types": ["table"],
        "can_be_split": False,
    },
    "tableCell": {
        "is_wrapped": True,
        "is_content": False,
        "can_contain_content": False,
        "child_node_types": None,
        "parent_node_types": ["tableRow"],
        "can_be_split": False,
    },
    TEXT_TYPE: {
        "is_wrapped": False,
        "is_content": True,
        "can_contain_content": False,
        "child_node_types": [],
        "parent_node_types": None,
        "can_be_split": False,
    },
    "image": {
        "is_wrapped": True,
        "is_content": True,
        "can_contain_content": False,
        "child_node_types": [],
        "parent_node_types": None,
        "can_be_split": False,
    },
}
