"""
Centralized constants for canvastag.

Storage keys, export formats and limits live here so the wire format and
the persisted layout are defined in exactly one place.
"""

from pathlib import Path

# =============================================================================
# PATHS
# =============================================================================

CANVASTAG_CONFIG_DIR = Path.home() / ".config" / "canvastag"
DEFAULT_DB_FILENAME = "board.db"

# =============================================================================
# PERSISTED STATE LAYOUT
# =============================================================================

# Owner id of the document-level key/value store (the canvas root)
DOCUMENT_ID = "0:0"

# Document-level key -> JSON object {tagName: {color?, emoji?}}
TAG_REGISTRY_KEY = "tag-registry"

# Per-object key -> JSON array of tag names, sorted and deduplicated
NODE_TAGS_KEY = "node-tags"

# =============================================================================
# EXPORT
# =============================================================================

CSV_HEADERS = {
    "nodes": "nodeId,nodeName,nodeType,tags",
    "items": "itemId,itemName,description,tags",
}
DEFAULT_CSV_VARIANT = "nodes"
EXPORT_FORMATS = ("csv", "json")

# Joins a tag set inside a single CSV field
TAG_DELIMITER = "|"

# =============================================================================
# LIMITS
# =============================================================================

MAX_EMOJI_CHARS = 2  # Recommended, not enforced
DEFAULT_SUGGESTION_LIMIT = 10
DEFAULT_LIST_LIMIT = 50

# =============================================================================
# ENVIRONMENT VARIABLES
# =============================================================================

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

ENV_VAR_DEFINITIONS = {
    "CANVASTAG_DB": {
        "description": "Path to the board database",
        "default": None,
        "valid_values": None,
    },
    "CANVASTAG_LOG_LEVEL": {
        "description": "Logging level for canvastag loggers",
        "default": "WARNING",
        "valid_values": LOG_LEVELS,
    },
    "CANVASTAG_CSV_VARIANT": {
        "description": "Default CSV export header variant",
        "default": DEFAULT_CSV_VARIANT,
        "valid_values": list(CSV_HEADERS),
    },
}
