"""Public interface for the ``ledger_ingest`` package.

Spreadsheet transaction import (parse, preview, reconcile categories, commit)
and export. Only symbol re-exports live here.
"""

from .api import export_user_transactions, import_receipt, import_spreadsheet
from .errors import (
    CommitError,
    IngestError,
    InvalidTransition,
    ReconciliationError,
    RowError,
    StructuralError,
)
from .exporter import ExportFile, export_transactions
from .ingest import parse_spreadsheet
from .models import (
    Category,
    ColumnMapping,
    ImportSummary,
    NewCategory,
    ParsedTransactionRow,
    ParseResult,
    Transaction,
    TransactionCreate,
)
from .orchestrator import ImportOrchestrator, ImportSession, Phase
from .persistence import SqlTransactionStore, TransactionStore
from .receipts import ReceiptItem, ReceiptParse

__all__ = [
    # API
    "import_spreadsheet",
    "export_user_transactions",
    "import_receipt",
    "parse_spreadsheet",
    "export_transactions",
    "ImportOrchestrator",
    "ImportSession",
    "Phase",
    # Persistence
    "TransactionStore",
    "SqlTransactionStore",
    # Models
    "Category",
    "ColumnMapping",
    "ExportFile",
    "ImportSummary",
    "NewCategory",
    "ParsedTransactionRow",
    "ParseResult",
    "ReceiptItem",
    "ReceiptParse",
    "Transaction",
    "TransactionCreate",
    # Errors
    "IngestError",
    "StructuralError",
    "RowError",
    "ReconciliationError",
    "CommitError",
    "InvalidTransition",
]
