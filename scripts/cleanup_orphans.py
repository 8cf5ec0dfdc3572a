"""Report, and optionally remove, audio left behind by failed uploads.

Usage: python scripts/cleanup_orphans.py [--older-than MINUTES] [--delete]
"""

import argparse
import logging
from datetime import datetime, timedelta

from app.database import session_scope
from app.services.journal import get_journal_service
from app.services.storage import StorageError, get_object_storage

logger = logging.getLogger("voice_journal")

DEFAULT_OLDER_THAN_MINUTES = 60


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--older-than",
        type=int,
        default=DEFAULT_OLDER_THAN_MINUTES,
        metavar="MINUTES",
        help="only consider orphans at least this old, so uploads still in flight are left alone",
    )
    parser.add_argument("--delete", action="store_true", help="remove orphans instead of only listing them")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    journals = get_journal_service()
    storage = get_object_storage()
    cutoff = datetime.utcnow() - timedelta(minutes=max(args.older_than, 1))

    with session_scope() as db:
        blobs = journals.find_orphaned_blobs(db, cutoff, storage)
        rows = journals.find_orphaned_audio_files(db, cutoff)
        total = len(blobs) + len(rows)

        for path in blobs:
            logger.info("Orphaned blob: %s", path)
        for row in rows:
            logger.info("Audio file without transcript: id=%s user=%s path=%s", row.id, row.user_id, row.storage_path)

        if args.delete:
            for row in rows:
                blobs.append(row.storage_path)
                db.delete(row)
            db.commit()
            for path in blobs:
                try:
                    storage.delete(path)
                except StorageError as e:
                    logger.error("Could not delete %s: %s", path, e)

    print(f"{'Removed' if args.delete else 'Found'} {total} orphans older than {args.older_than} minutes")


if __name__ == "__main__":
    main()
