"""Periodic removal of files whose expiry has passed."""
import logging
import threading

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from common.db import db
from models.file import FileRecord, utcnow
from services.edge_cache.base_cache import purge_quietly

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 60


class ExpirySweeper:
    def __init__(self, app, interval=DEFAULT_SWEEP_INTERVAL):
        self.app = app
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread = None

    def delete_expired_files(self):
        """One sweep. Returns the number of index rows removed.

        Each record is handled on its own: a failed file delete or purge is
        logged and the row is still removed, since the index decides whether
        a file exists.
        """
        extensions = self.app.extensions
        paths = extensions['paths']
        storage = extensions['local_storage']
        edge_cache = extensions['edge_cache']

        expired = (
            db.session.query(FileRecord.id, FileRecord.filename, FileRecord.filetype)
            .filter(FileRecord.expires.isnot(None), FileRecord.expires < utcnow())
            .all()
        )

        deleted = 0
        for row in expired:
            url = paths.display_url(row.filename, row.filetype)
            try:
                _, file_path = paths.full_file_path(row.filename, row.filetype)
                storage.delete_file(file_path)
            except Exception:
                logger.exception('Failed to delete expired file %s', url)
            purge_quietly(edge_cache, [url])

            # Same id as the file removed above, so disk and index stay in step
            try:
                result = db.session.execute(
                    delete(FileRecord).where(FileRecord.id == row.id)
                )
                db.session.commit()
            except SQLAlchemyError:
                db.session.rollback()
                logger.exception('Failed to delete index row %s for %s', row.id, url)
                continue
            if result.rowcount:
                deleted += 1
                logger.info('Deleted expired file %s', url)
        return deleted

    # -------- background thread --------
    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, name='expiry-sweeper', daemon=True)
        self._thread.start()
        logger.info('Expiry sweeper started, interval %ss', self.interval)

    def stop(self, timeout=None):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run(self):
        """Sweep every interval until stop() is called. Blocks the calling thread."""
        while not self._stop_event.wait(self.interval):
            with self.app.app_context():
                try:
                    self.delete_expired_files()
                except Exception:
                    logger.exception('Expiry sweep failed')
