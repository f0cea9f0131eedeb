"""
Configuration settings for netlex.

Central defaults shared by the graph converter and the scoring engine.
"""

import logging
import os
import sys

# Lexicon categories
POSITIVE_CATEGORY = "positive"
NEGATIVE_CATEGORY = "negative"

# Lexicon tables (CSV/TSV or DataFrame)
LEXICON_WORD_COLUMN = "word"
LEXICON_CATEGORY_COLUMN = "category"
LEXICON_SCORE_COLUMN = "score"
LEXICON_TABLE_SUFFIXES = (".csv", ".tsv", ".tab")

# Graph conversion
WEIGHT_ATTRIBUTE = "weight"  # name that maps to Edge.weight rather than Edge.attributes

# Logging
LOG_LEVEL = os.getenv("NETLEX_LOG_LEVEL", "WARNING")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = LOG_LEVEL) -> None:
    """Configure a stdout handler for the netlex loggers."""
    logger = logging.getLogger("netlex")
    logger.setLevel(getattr(logging, log_level.upper()))
    if not any(getattr(h, "_netlex", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._netlex = True
        logger.addHandler(handler)
