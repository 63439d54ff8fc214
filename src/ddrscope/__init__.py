from ddrscope.analysis import Analysis, analyze
from ddrscope.corpus import Corpus, assemble_corpus, build_corpus, load_corpus
from ddrscope.crossfile import CrossFileRefs, find_cross_file_references
from ddrscope.index import ReverseRefs, build_reverse_references
from ddrscope.lexical import detect_indirection, extract_field_references
from ddrscope.loader import SourceDocument, decode_document, read_document
from ddrscope.mapper import DocumentError, map_document, parse_document
from ddrscope.models import Database, qualified_name
from ddrscope.search import SearchHistory, SearchResults, search_corpus

__all__ = [
    "Analysis",
    "Corpus",
    "CrossFileRefs",
    "Database",
    "DocumentError",
    "ReverseRefs",
    "SearchHistory",
    "SearchResults",
    "SourceDocument",
    "analyze",
    "assemble_corpus",
    "build_corpus",
    "build_reverse_references",
    "decode_document",
    "detect_indirection",
    "extract_field_references",
    "find_cross_file_references",
    "load_corpus",
    "map_document",
    "parse_document",
    "qualified_name",
    "read_document",
    "search_corpus",
]
