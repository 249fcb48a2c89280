"""Global configuration constants for the project.

Defines paths, filenames, placeholder conventions and defaults used across
the generation pipeline and the terminal interface.
"""

from __future__ import annotations

from pathlib import Path

# Project directories
PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
LOG_DIR: Path = PROJECT_ROOT / "logs"
ENV_FILE: Path = PROJECT_ROOT / ".env"

# Logging
LOG_FILENAME_GENERATE: str = "generate_presentations.log"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Templates
TEMPLATE_EXTENSION: str = ".pptx"
TEMPLATE_LOCK_PREFIX: str = "~$"
LANGUAGE_NAMES: dict[str, str] = {
    "FR": "French",
    "EN": "English",
    "DE": "German",
    "IT": "Italian",
    "ES": "Spanish",
}

# Record columns with a special meaning for output naming and filters
CLIENT_NAME_COLUMN: str = "Nom du client"
ORG_ID_COLUMN: str = "Org ID"
DATE_COLUMN: str = "JJ/MM/AAAA"
AUDIENCE_COLUMN: str = "PM only or PM-RM"
ROW_LANGUAGE_COLUMN: str = "Language"

# Audience filter values
AUDIENCE_SKIP_VALUE: str = "Do not generate OP"
AUDIENCE_PM_ONLY: str = "PM only"
AUDIENCE_PM_RM: str = "PM-RM"

# Reserved mapping source keys (never CSV columns)
DATE_TOKEN: str = "@date"
CLIENT_NAME_TOKEN: str = "@client"

# Placeholder conventions
PLACEHOLDER_OPEN: str = "<<"
PLACEHOLDER_CLOSE: str = ">>"
PREVIOUS_YEAR_TAG_FORMAT: str = "<<{column} (N-1)>>"

# Built-in column -> placeholder rules, in precedence order
DEFAULT_MAPPING_RULES: tuple[tuple[str, str], ...] = (
    ("JJ/MM/AAAA", "<<[JJ/MM/AAAA]>>"),
    ("Nom du client", "<<NOM CLIENT>>"),
    ("#reviewsFlopPOI1", "<<#reviewsFlopPOINotes1>>"),
    ("#reviewsFlopPOI2", "<<#reviewsFlopPOINotes2>>"),
    ("#reviewsTopPOI1", "<<#reviewsTopPOINotes1>>"),
    ("#reviewsTopPOI2", "<<#reviewsTopPOINotes2>>"),
    (DATE_TOKEN, "<<TODAY>>"),
)

# CSV cleaning
NULL_LIKE_VALUES: frozenset[str] = frozenset(
    {"", "#n/a", "null", "none", "nan", "n.a", "na"}
)
PREVIEW_ROW_LIMIT: int = 5

# Output naming
RUN_FOLDER_PREFIX: str = "OnePagerGeneratedAt_"
RUN_FOLDER_TIMESTAMP_FORMAT: str = "%Y-%m-%d_%H-%M-%S"
FALLBACK_CLIENT_NAME: str = "Unknown"
FALLBACK_ORG_ID: str = "000"
FALLBACK_DATE: str = "00-00-0000"
FORBIDDEN_FILENAME_CHARS: str = r'[\\/*?:"<>|]'

# Execution defaults
DEFAULT_MAX_WORKERS: int = 4
DEFAULT_DATE_FORMAT: str = "%d/%m/%Y"
