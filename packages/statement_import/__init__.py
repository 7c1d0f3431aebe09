"""Public interface for the ``statement_import`` package.

Bank-statement CSV ingestion: delimiter and column detection, date/amount
normalization, income/expense inference, fuzzy duplicate detection against
stored transactions, and grouping of similar rows for bulk review. This module
only re-exports the stable import surface.
"""

from .api import import_csv_text, parsing_confidence, process_imported_transactions
from .duplicates import check_for_duplicates, find_duplicate, levenshtein, similarity
from .export import export_canonical_csv
from .grouping import (
    group_transactions_by_description,
    normalize_description,
    ungrouped_transactions,
)
from .models import (
    CANONICAL_HEADERS,
    CandidateTransaction,
    ColumnMapping,
    ImportResult,
    PersistedTransaction,
    RawRow,
    TransactionGroup,
    TransactionType,
)
from .normalizers import determine_transaction_type, parse_amount, parse_date
from .review import ImportReview, accepted_transactions, build_review, finalize, update_group
from .schema import infer_column_mapping, is_canonical_header
from .tabular import decode_csv, decode_csv_with_delimiter, detect_delimiter

__all__ = [
    # Pipeline
    "decode_csv",
    "decode_csv_with_delimiter",
    "detect_delimiter",
    "infer_column_mapping",
    "is_canonical_header",
    "parse_date",
    "parse_amount",
    "determine_transaction_type",
    "check_for_duplicates",
    "find_duplicate",
    "levenshtein",
    "similarity",
    "process_imported_transactions",
    "parsing_confidence",
    "group_transactions_by_description",
    "normalize_description",
    "ungrouped_transactions",
    "import_csv_text",
    # Review / export
    "ImportReview",
    "build_review",
    "update_group",
    "accepted_transactions",
    "finalize",
    "export_canonical_csv",
    # Models / types
    "CANONICAL_HEADERS",
    "CandidateTransaction",
    "ColumnMapping",
    "ImportResult",
    "PersistedTransaction",
    "RawRow",
    "TransactionGroup",
    "TransactionType",
]
