"""Shared utilities for the KK preset browser."""

# Pattern definitions
from utils.patterns import DIGIT_RUN, WAV_EXTENSION

# String utilities
from utils.strings import (
    natural_key,
    natural_keys,
    contains_casefold,
)

# Database utilities
from utils.database import open_read_only, table_exists, query_to_dicts

# Output formatting
from utils.formatting import (
    LIST_SEPARATOR,
    FINAL_SEPARATOR,
    LEVEL_SEPARATOR,
    join_list,
    join_levels,
    format_count,
    truncate_text,
    TableFormatter,
)

# Configuration
from utils.config import (
    AppConfig,
    default_db_path,
    default_preview_library_path,
)

__all__ = [
    # Patterns
    "DIGIT_RUN",
    "WAV_EXTENSION",
    # Strings
    "natural_key",
    "natural_keys",
    "contains_casefold",
    # Database
    "open_read_only",
    "table_exists",
    "query_to_dicts",
    # Formatting
    "LIST_SEPARATOR",
    "FINAL_SEPARATOR",
    "LEVEL_SEPARATOR",
    "join_list",
    "join_levels",
    "format_count",
    "truncate_text",
    "TableFormatter",
    # Config
    "AppConfig",
    "default_db_path",
    "default_preview_library_path",
]
