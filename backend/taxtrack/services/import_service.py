"""
Import service for file uploads and processing.
"""

import logging
import shutil
import threading
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict, Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taxtrack.config import settings
from taxtrack.models.transaction import Transaction, TransactionType, BusinessType
from taxtrack.models.import_log import ImportLog, ImportStatus
from taxtrack.schemas.import_file import (
    ImportUploadResponse,
    ImportConfirmRequest,
    ImportStatusResponse,
    SkippedTransaction,
)
from taxtrack.parsers.csv_parser import CSVParser, detect_column_mapping
from taxtrack.parsers.ofx_parser import OFXParser
from taxtrack.services.deduplication_service import (
    DuplicateCandidate,
    check_duplicate,
    get_excluded_fingerprints,
)
from taxtrack.services.rules_service import get_rules, match_rule, apply_match

logger = logging.getLogger(__name__)

PENDING_IMPORTS: Dict[str, Dict[str, Any]] = {}

# One import at a time per process, so two confirms of overlapping statements
# cannot both pass the duplicate check for the same row
_import_lock = threading.Lock()

DEFAULT_INCOME_CATEGORY = "Sales"


@dataclass
class ImportResult:
    """Counts and messages from importing one batch of parsed rows."""
    imported: int = 0
    skipped: int = 0
    categorized: int = 0
    errors: List[str] = field(default_factory=list)
    skipped_transactions: List[SkippedTransaction] = field(default_factory=list)


def get_parser(file_path: Path):
    """Get appropriate parser for file type"""
    parsers = [CSVParser(), OFXParser()]
    for parser in parsers:
        if parser.can_parse(file_path):
            return parser
    return None


def save_upload(file_content: bytes, filename: str):
    """Save uploaded file and return path and import_id"""
    import_id = str(uuid.uuid4())

    inbox_path = Path(settings.import_inbox_path)
    inbox_path.mkdir(parents=True, exist_ok=True)

    safe_filename = f"{import_id}_{Path(filename).name}"
    file_path = inbox_path / safe_filename

    with open(file_path, 'wb') as f:
        f.write(file_content)

    return file_path, import_id


def get_preview(file_path: Path, import_id: str, filename: str) -> ImportUploadResponse:
    """Get file preview for confirmation"""
    parser = get_parser(file_path)
    if not parser:
        raise ValueError(f"No parser available for file type: {file_path.suffix}")

    headers, preview_rows = parser.get_preview(file_path)
    row_count = parser.count_rows(file_path)

    detected_format = None
    if isinstance(parser, CSVParser):
        detected_format = detect_column_mapping(headers)

    PENDING_IMPORTS[import_id] = {
        'file_path': str(file_path),
        'filename': filename,
        'parser_type': type(parser).__name__,
        'detected_format': detected_format
    }

    return ImportUploadResponse(
        import_id=import_id,
        filename=filename,
        row_count=row_count,
        headers=headers,
        preview_rows=preview_rows,
        detected_format=detected_format
    )


def _default_classification(amount: Decimal) -> Dict[str, Any]:
    """Money in is assumed to be sales until reviewed; money out waits for review."""
    if amount > 0:
        return {
            'type': TransactionType.business,
            'business_type': BusinessType.income,
            'category': DEFAULT_INCOME_CATEGORY,
        }
    return {
        'type': TransactionType.unreviewed,
        'business_type': None,
        'category': None,
    }


def import_transactions(
    db: Session,
    rows: List[Dict[str, Any]],
    source_tag: str
) -> ImportResult:
    """
    Store parsed rows, skipping duplicates and excluded fingerprints and
    applying categorization rules to the rest.

    Each insert runs in its own savepoint so a unique-constraint failure
    only loses that row.
    """
    result = ImportResult()
    rules = get_rules(db)
    excluded = get_excluded_fingerprints(db)
    batch_fingerprints = set()

    for row in rows:
        candidate = DuplicateCandidate(
            date=row['date'],
            amount=row['amount'],
            description=row['description'],
            reference=row.get('reference'),
        )
        check = check_duplicate(db, candidate, batch_fingerprints, excluded)

        if not check.admitted:
            logger.info("Skipping %s: %s", row['description'], check.reason)
            result.skipped += 1
            result.skipped_transactions.append(SkippedTransaction(
                date=row['date'].strftime('%Y-%m-%d'),
                description=row['description'],
                amount=row['amount'],
                reason=check.reason
            ))
            continue

        transaction = Transaction(
            id=str(uuid.uuid4()),
            fingerprint=check.fingerprint,
            date=row['date'],
            description=row['description'],
            merchant=row['description'],
            reference=row.get('reference'),
            amount=row['amount'],
            tags=[source_tag],
            **_default_classification(row['amount'])
        )

        match = match_rule(transaction, rules)
        if match:
            apply_match(transaction, match)

        try:
            with db.begin_nested():
                db.add(transaction)
        except IntegrityError:
            logger.warning("Fingerprint %s stored concurrently, skipping", check.fingerprint)
            result.skipped += 1
            result.skipped_transactions.append(SkippedTransaction(
                date=row['date'].strftime('%Y-%m-%d'),
                description=row['description'],
                amount=row['amount'],
                reason="Exact fingerprint match (already imported)"
            ))
            continue

        batch_fingerprints.add(check.fingerprint)
        result.imported += 1
        if match:
            result.categorized += 1

    db.commit()
    return result


def _move(file_path: Path, destination: str):
    target = Path(destination)
    target.mkdir(parents=True, exist_ok=True)
    if file_path.exists():
        shutil.move(str(file_path), str(target / file_path.name))


def process_import(
    db: Session,
    import_id: str,
    request: ImportConfirmRequest
) -> ImportStatusResponse:
    """Parse a pending upload and import its rows."""

    if import_id not in PENDING_IMPORTS:
        raise ValueError(f"Import {import_id} not found or expired")

    with _import_lock:
        pending = PENDING_IMPORTS.pop(import_id, None)
        if pending is None:
            raise ValueError(f"Import {import_id} not found or expired")

        file_path = Path(pending['file_path'])
        filename = pending['filename']
        parser = get_parser(file_path)

        import_log = ImportLog(
            id=import_id,
            filename=filename,
            source=parser.source if parser else "unknown",
            status=ImportStatus.processing
        )
        db.add(import_log)
        db.commit()

        try:
            if parser is None:
                raise ValueError(f"No parser available for file type: {file_path.suffix}")

            column_mapping: Optional[Dict[str, Any]] = None
            if request.column_mapping is not None:
                column_mapping = request.column_mapping.model_dump()

            rows = parser.parse(file_path, column_mapping, request.date_format)
            result = import_transactions(db, rows, parser.tag)
            errors = parser.errors + result.errors

            import_log.status = ImportStatus.completed
            import_log.transactions_imported = result.imported
            import_log.transactions_skipped = result.skipped
            import_log.transactions_categorized = result.categorized
            if errors:
                import_log.error_message = "; ".join(errors[:10])
            db.commit()

            _move(file_path, settings.import_processed_path)
            logger.info(
                "Import %s (%s): %d imported, %d skipped, %d categorized, %d errors",
                import_id, filename, result.imported, result.skipped, result.categorized, len(errors)
            )

            return ImportStatusResponse(
                import_id=import_id,
                status=ImportStatus.completed,
                filename=filename,
                transactions_imported=result.imported,
                transactions_skipped=result.skipped,
                transactions_categorized=result.categorized,
                errors=errors,
                skipped_transactions=result.skipped_transactions
            )

        except Exception as e:
            logger.error("Import %s (%s) failed: %s", import_id, filename, e)
            db.rollback()
            import_log.status = ImportStatus.failed
            import_log.error_message = str(e)
            db.commit()

            _move(file_path, settings.import_failed_path)
            raise


def get_import_status(db: Session, import_id: str) -> ImportStatusResponse:
    """Get status of an import"""
    import_log = db.query(ImportLog).filter(ImportLog.id == import_id).first()
    if not import_log:
        if import_id in PENDING_IMPORTS:
            return ImportStatusResponse(
                import_id=import_id,
                status=ImportStatus.pending,
                filename=PENDING_IMPORTS[import_id]['filename']
            )
        raise ValueError(f"Import {import_id} not found")

    return ImportStatusResponse(
        import_id=import_log.id,
        status=import_log.status,
        filename=import_log.filename,
        transactions_imported=import_log.transactions_imported or 0,
        transactions_skipped=import_log.transactions_skipped or 0,
        transactions_categorized=import_log.transactions_categorized or 0,
        errors=[import_log.error_message] if import_log.error_message else []
    )


def get_import_history(db: Session, limit: int = 20):
    """Get recent import history"""
    return db.query(ImportLog).order_by(ImportLog.created_at.desc()).limit(limit).all()
