from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

_WORD_RE = re.compile(r"""[^\W_]+(?:['’-][^\W_]+)*""")  # letters/digits, inner apostrophes and hyphens

STOPWORDS = {
    # minimal English stopword set (extend as needed)
    'the','a','an','and','or','but','if','then','else','for','to','of','in','on','at','by','with','as',
    'is','are','was','were','be','been','being','this','that','these','those','it','its','from','into',
    'we','you','they','he','she','i','me','my','your','our','their','his','her','them','us','do','does',
    'did','so','than','too','can','could','should','would','will','shall'
}


def normalize_word(word: str) -> str:
    # shared by lexicon loading and scoring, so both sides agree on case
    return word.strip().lower()


@dataclass
class PreprocessConfig:
    lowercase: bool = True
    remove_stopwords: bool = False
    stemming: bool = False  # lexicon lookup is exact-match; stem only if the lexicon was stemmed too
    remove_numbers: bool = False
    min_length: int = 1


def _simple_stem(token: str) -> str:
    # light suffix stripping for English
    t = token.lower()
    if len(t) > 4 and t.endswith("ies"):
        return t[:-3] + "y"
    if len(t) > 5 and t.endswith("ing"):
        return t[:-3]
    if len(t) > 4 and t.endswith("ed"):
        return t[:-2]
    if len(t) > 3 and t.endswith("s") and not t.endswith("ss"):
        return t[:-1]
    return t


def tokenize(text: str, cfg: Optional[PreprocessConfig] = None) -> List[str]:
    cfg = cfg or PreprocessConfig()
    if cfg.lowercase:
        text = text.lower()
    toks = [m.group(0) for m in _WORD_RE.finditer(text)]
    if cfg.remove_numbers:
        toks = [t for t in toks if not any(ch.isdigit() for ch in t)]
    if cfg.remove_stopwords:
        toks = [t for t in toks if t.lower() not in STOPWORDS]
    if cfg.stemming:
        toks = [_simple_stem(t) for t in toks]
    return [t for t in toks if len(t) >= cfg.min_length]


def tokenize_documents(documents: Iterable[Tuple[str, str]],
                       cfg: Optional[PreprocessConfig] = None) -> List[Tuple[str, List[str]]]:
    """Tokenize (doc_id, text) pairs into the (doc_id, tokens) form the scorer consumes."""
    cfg = cfg or PreprocessConfig()
    return [(doc_id, tokenize(text, cfg)) for doc_id, text in documents]
