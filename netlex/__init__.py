from .errors import NetlexError, ValidationError, MissingAttributeError, DimensionMismatchError, DivideByZeroPolicy
from .datatypes import (Vertex, Edge, Graph, SparseMatrix, IncidenceMatrix, LexiconEntry, Lexicon,
                        DocumentScore, Bucketing, ConfusionMatrix)
from .preprocessing import PreprocessConfig, normalize_word, tokenize, tokenize_documents
from .graphing import (edges_to_graph, graph_to_sparse_matrix, sparse_matrix_to_edges, sparse_matrix_to_graph,
                       co_occurrence_matrix, incidence_from_records, incidence_from_frame, edges_from_records,
                       edges_from_frame, vertices_from_frame, to_networkx, graph_to_frames, build_adjacency)
from .lexicon import load_lexicon, lexicon_from_word_lists, merge_lexicons
from .scoring import (RatioMode, score_document, score_corpus, iter_scores, compute_sentiment_ratio,
                      compute_subjectivity_ratio, unmatched_words, scores_frame)
from .validation import bucket_scores, confusion_matrix, validate_against_manual_coding, classification_summary

__version__ = "0.1.0"
