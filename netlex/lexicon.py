from __future__ import annotations
import logging
import math
from numbers import Number
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Set, Union

import pandas as pd

from .datatypes import Lexicon, LexiconEntry
from .errors import MissingAttributeError, ValidationError
from .preprocessing import normalize_word
from . import settings

logger = logging.getLogger(__name__)

LexiconSource = Union[str, Path, pd.DataFrame, Mapping, Iterable[str]]


class _Builder:
    """Accumulates (word, categories, score) rows, merging words that collide after normalization."""

    def __init__(self):
        self.categories: Dict[str, Set[str]] = {}
        self.scores: Dict[str, Optional[float]] = {}

    def add(self, word, categories: Iterable[str] = (), score: Optional[float] = None) -> None:
        if not isinstance(word, str) or not normalize_word(word):
            raise ValidationError(f"Lexicon word must be a non-empty string, got {word!r}")
        key = normalize_word(word)
        cats = self.categories.setdefault(key, set())
        cats.update(str(c) for c in categories)
        if score is not None:
            if isinstance(score, bool) or not isinstance(score, Number) or math.isnan(score):
                raise ValidationError(f"Score for {word!r} is not a number: {score!r}")
            previous = self.scores.get(key)
            if previous is not None and previous != float(score):
                raise ValidationError(f"Conflicting scores for {key!r}: {previous} and {score}")
            self.scores[key] = float(score)
        else:
            self.scores.setdefault(key, None)

    def build(self) -> Lexicon:
        entries = {w: LexiconEntry(word=w, categories=frozenset(self.categories[w]), score=self.scores[w])
                   for w in self.categories}
        return Lexicon(entries=MappingProxyType(entries))


def _from_mapping(source: Mapping, builder: _Builder) -> None:
    for word, value in source.items():
        if isinstance(value, str):
            builder.add(word, (value,))
        elif isinstance(value, Number) and not isinstance(value, bool):
            builder.add(word, (), value)
        elif isinstance(value, Iterable):
            builder.add(word, list(value))
        else:
            raise ValidationError(f"Cannot interpret lexicon value {value!r} for {word!r}")


def _from_frame(frame: pd.DataFrame, builder: _Builder, category: Optional[str]) -> None:
    word_col = settings.LEXICON_WORD_COLUMN
    cat_col = settings.LEXICON_CATEGORY_COLUMN
    score_col = settings.LEXICON_SCORE_COLUMN
    if word_col not in frame.columns:
        raise MissingAttributeError(f"Lexicon table has no {word_col!r} column")
    has_cat, has_score = cat_col in frame.columns, score_col in frame.columns
    if not has_cat and not has_score and category is None:
        raise MissingAttributeError(
            f"Lexicon table needs a {cat_col!r} or {score_col!r} column, or an explicit category")
    for rec in frame.to_dict("records"):
        cats = []
        if has_cat and isinstance(rec[cat_col], str) and rec[cat_col].strip():
            cats.append(rec[cat_col].strip())
        elif category is not None:
            cats.append(category)
        score = rec[score_col] if has_score else None
        if score is not None and pd.isna(score):
            score = None
        builder.add(rec[word_col], cats, score)


def _from_path(path: Path, builder: _Builder, category: Optional[str]) -> None:
    if not path.exists():
        raise ValidationError(f"Lexicon file not found: {path}")
    if path.suffix.lower() in settings.LEXICON_TABLE_SUFFIXES:
        sep = "," if path.suffix.lower() == ".csv" else "\t"
        _from_frame(pd.read_csv(path, sep=sep, comment="#"), builder, category)
        return
    # plain word list, one word per line
    if category is None:
        raise ValidationError(f"Word list {path} needs an explicit category")
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith(("#", ";")):
                builder.add(line, (category,))


def load_lexicon(source: LexiconSource, category: Optional[str] = None) -> Lexicon:
    """
    Build a read-only Lexicon from a mapping, a DataFrame, a file or a word list.

    Args:
        source: word -> category / categories / score mapping; a DataFrame with a
            "word" column plus "category" and/or "score"; a path to a CSV/TSV table
            with those columns or to a one-word-per-line list; or an iterable of words
        category: category assigned to bare words (word lists, tables without one)

    Returns:
        Lexicon keyed by case-normalized word
    """
    builder = _Builder()
    if isinstance(source, pd.DataFrame):
        _from_frame(source, builder, category)
    elif isinstance(source, (str, Path)):
        _from_path(Path(source), builder, category)
    elif isinstance(source, Mapping):
        _from_mapping(source, builder)
    elif isinstance(source, Iterable):
        if category is None:
            raise ValidationError("A bare word list needs an explicit category")
        for word in source:
            builder.add(word, (category,))
    else:
        raise ValidationError(f"Unsupported lexicon source: {type(source).__name__}")
    lexicon = builder.build()
    logger.info("Loaded lexicon with %d words in %d categories", len(lexicon), len(lexicon.categories))
    return lexicon


def lexicon_from_word_lists(word_lists: Mapping[str, Iterable[str]]) -> Lexicon:
    """Dictionary layout of category -> words, e.g. {"positive": [...], "negative": [...]}."""
    builder = _Builder()
    for cat, words in word_lists.items():
        if isinstance(words, str):
            raise ValidationError(f"Words for {cat!r} must be a list, not a string")
        for word in words:
            builder.add(word, (cat,))
    return builder.build()


def merge_lexicons(*lexicons: Lexicon) -> Lexicon:
    builder = _Builder()
    for lex in lexicons:
        for entry in lex.entries.values():
            builder.add(entry.word, entry.categories, entry.score)
    return builder.build()
