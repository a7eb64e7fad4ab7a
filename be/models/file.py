from datetime import datetime, timezone

from sqlalchemy import Index, UniqueConstraint

from models.base import BaseModel
from common.db import db


def utcnow():
    """Naive UTC timestamp, the form stored in the files index."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class FileRecord(BaseModel):
    """One row per stored note, stylesheet or asset.

    (filename, filetype) addresses the physical file under userfiles/.
    """
    __tablename__ = 'files'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    filename = db.Column(db.String(64), nullable=False)
    filetype = db.Column(db.String(16), nullable=False)
    hash = db.Column(db.String(40), nullable=False)  # SHA1 of the stored bytes
    bytes = db.Column(db.Integer, nullable=False, default=0)
    encrypted = db.Column(db.Boolean, nullable=False, default=False)
    created = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires = db.Column(db.DateTime, nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint('filename', 'filetype', name='uq_files_filename_filetype'),
        Index('idx_files_filetype_hash', 'filetype', 'hash'),
    )

    def __repr__(self):
        return f'<FileRecord {self.filename}.{self.filetype} owner={self.user_id}>'
