from __future__ import annotations
import logging
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import pandas as pd

from .datatypes import DocumentScore, Lexicon
from .errors import DivideByZeroPolicy, ValidationError, safe_ratio
from .preprocessing import normalize_word
from . import settings

logger = logging.getLogger(__name__)

Categories = Union[str, Sequence[str]]


class RatioMode(str, Enum):
    NET_OVER_SENTIMENT = "net_over_sentiment"  # (pos - neg) / (pos + neg)
    NET_OVER_LENGTH = "net_over_length"        # (pos - neg) / total tokens


def score_document(tokens: Sequence[str], lexicon: Lexicon,
                   document_id: Optional[str] = None) -> DocumentScore:
    counts: Dict[str, int] = {c: 0 for c in lexicon.categories}
    matched: Dict[str, int] = {}
    polarity = 0.0
    entries = lexicon.entries
    for tok in tokens:
        entry = entries.get(normalize_word(tok))
        if entry is None:
            continue
        matched[entry.word] = matched.get(entry.word, 0) + 1
        for cat in entry.categories:
            counts[cat] += 1
        if entry.score is not None:
            polarity += entry.score
    return DocumentScore(document_id=document_id, counts=counts, total_tokens=len(tokens),
                         polarity=polarity, matched_words=matched)


def iter_scores(documents: Iterable[Tuple[str, Sequence[str]]], lexicon: Lexicon) -> Iterator[DocumentScore]:
    """Lazily score (doc_id, tokens) pairs; stop iterating to cancel between documents."""
    for doc_id, tokens in documents:
        yield score_document(tokens, lexicon, document_id=doc_id)


def score_corpus(documents: Iterable[Tuple[str, Sequence[str]]], lexicon: Lexicon) -> List[DocumentScore]:
    records = list(iter_scores(documents, lexicon))
    logger.info("Scored %d documents against %d lexicon words", len(records), len(lexicon))
    return records


def compute_sentiment_ratio(record: DocumentScore,
                            mode: Union[RatioMode, str] = RatioMode.NET_OVER_SENTIMENT,
                            positive: Categories = settings.POSITIVE_CATEGORY,
                            negative: Categories = settings.NEGATIVE_CATEGORY,
                            on_zero: DivideByZeroPolicy = DivideByZeroPolicy.NAN) -> Optional[float]:
    """
    Net sentiment of a scored document.

    positive/negative take one category or several, so negation categories
    can be folded in (e.g. positive=("positive", "neg_negative")).
    A zero denominator returns the on_zero policy value instead of raising.
    """
    try:
        mode = RatioMode(mode)
    except ValueError:
        raise ValidationError(f"Unknown sentiment ratio mode: {mode!r}") from None
    pos, neg = record.count(positive), record.count(negative)
    if mode is RatioMode.NET_OVER_SENTIMENT:
        return safe_ratio(pos - neg, pos + neg, on_zero)
    return safe_ratio(pos - neg, record.total_tokens, on_zero)


def compute_subjectivity_ratio(record: DocumentScore,
                               positive: Categories = settings.POSITIVE_CATEGORY,
                               negative: Categories = settings.NEGATIVE_CATEGORY,
                               on_zero: DivideByZeroPolicy = DivideByZeroPolicy.NAN) -> Optional[float]:
    pos, neg = record.count(positive), record.count(negative)
    return safe_ratio(pos + neg, record.total_tokens, on_zero)


def unmatched_words(lexicon: Lexicon, records: Iterable[DocumentScore]) -> List[str]:
    """Lexicon words no document matched. Expected in practice, useful when pruning a lexicon."""
    seen = set()
    for rec in records:
        seen.update(rec.matched_words)
    return [w for w in lexicon.words if w not in seen]


def scores_frame(records: Iterable[DocumentScore],
                 mode: Union[RatioMode, str] = RatioMode.NET_OVER_SENTIMENT,
                 positive: Categories = settings.POSITIVE_CATEGORY,
                 negative: Categories = settings.NEGATIVE_CATEGORY) -> pd.DataFrame:
    rows = []
    for rec in records:
        row = {"document_id": rec.document_id, **dict(rec.counts),
               "total_tokens": rec.total_tokens, "polarity": rec.polarity,
               "sentiment": compute_sentiment_ratio(rec, mode, positive, negative),
               "subjectivity": compute_subjectivity_ratio(rec, positive, negative)}
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=["total_tokens", "polarity", "sentiment", "subjectivity"],
                            index=pd.Index([], name="document_id"))
    return pd.DataFrame(rows).set_index("document_id")
