"""
File store engine.

Resolves which stored file an incoming note/stylesheet/asset request refers to,
writes the bytes under userfiles/, invalidates the edge cache and upserts the
files index. Identity rules per filetype:

- html: owner-bound filename; another owner's name is never reused
- css: deterministic per-owner prefix, one chunk per content hash
- everything else: (filetype, hash), shared by all owners
"""
import logging
import re
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from common.db import db
from common.errors import (
    InvalidRequest,
    NotFound,
    OwnershipConflict,
    StoreInitError,
    UnsupportedMediaType,
    WriteFailure,
)
from models.file import FileRecord, utcnow
from services.edge_cache.base_cache import purge_quietly
from services.mapper import Mapper
from services.note_renderer import render_note
from utils.hash import sha1_bytes
from utils.identifiers import deterministic_identifier, random_identifier

logger = logging.getLogger(__name__)

FILE_EXTENSION_WHITELIST = (
    # HTML
    'html', 'css',
    # Images
    'jpg', 'jpeg', 'png', 'webp', 'svg', 'gif',
    # Video
    'webm',
    # Fonts
    'ttf', 'otf', 'woff', 'woff2',
)
DOCUMENT_TYPE = 'html'
STYLESHEET_TYPE = 'css'

# Length of the base36 filenames
FILENAME_LENGTHS = {
    DOCUMENT_TYPE: 8,
    'default': 20,
}
MAX_FILENAME_ATTEMPTS = 3
CSS_HASH_SUFFIX_LENGTH = 8
DEBUG_RETURN_HTML = 1

_SHA1_PATTERN = re.compile(r'^[a-f0-9]{40}$')
_FILENAME_PATTERN = re.compile(r'^[a-z0-9]+$')


def filename_length(extension):
    return FILENAME_LENGTHS.get(extension, FILENAME_LENGTHS['default'])


def is_valid_hash(value):
    return isinstance(value, str) and bool(_SHA1_PATTERN.match(value))


def normalize_filename(filename):
    """Strip a legacy '.ext' suffix; the rest must be lowercase alphanumeric."""
    if not isinstance(filename, str):
        raise InvalidRequest('Filename must be a string')
    if '.' in filename:
        filename = filename.split('.')[0]
    if not _FILENAME_PATTERN.match(filename):
        raise InvalidRequest('Filename must be lowercase alphanumeric')
    return filename


class FileStore:
    """One instance per request. ``post`` is the request payload."""

    def __init__(self, user, post=None, paths=None, storage=None, edge_cache=None, hash_salt=None):
        extensions = current_app.extensions
        self.user = user
        self.post = post or {}
        self.paths = paths or extensions['paths']
        self.storage = storage or extensions['local_storage']
        self.edge_cache = edge_cache or extensions['edge_cache']
        self.hash_salt = current_app.config.get('HASH_SALT', '') if hash_salt is None else hash_salt

        self.filename = ''
        self.extension = ''
        self.hash = self.post.get('hash') or None
        self.expires = None
        self.file = None
        self.deduplicated = False
        self._initialised = False
        self._dedup_result = None
        self._css_filename = None

    # -------- request validation --------
    def check_post_filename_and_extension(self):
        filetype = self.post.get('filetype')
        self.extension = filetype if isinstance(filetype, str) and filetype else 'unknown'
        if self.extension not in FILE_EXTENSION_WHITELIST:
            raise UnsupportedMediaType(f'Unsupported media type {self.extension.upper()}')

        if self.post.get('filename'):
            self.filename = normalize_filename(self.post['filename'])

    def check_hash(self):
        # CSS without a hash is the legacy single-stylesheet upload
        if self.hash is None and self.extension == STYLESHEET_TYPE:
            return
        if not is_valid_hash(self.hash):
            raise InvalidRequest('Content hash must be a 40 character SHA1 hex digest')

    def get_expiration(self):
        """Expiry from the JS millisecond timestamp in the request, if any."""
        expires = self.post.get('expiration')
        if expires in (None, '', 0, '0'):
            return None
        if isinstance(expires, bool):
            raise InvalidRequest('Expiration must be a millisecond timestamp')
        try:
            stamp = datetime.fromtimestamp(float(expires) / 1000, tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise InvalidRequest('Expiration must be a millisecond timestamp') from e
        return stamp.replace(tzinfo=None)

    # -------- identity resolution --------
    def init_file(self, create_if_missing=True):
        """Resolve the filename for this request.

        Returns a success result when an identical asset is already stored,
        in which case nothing needs to be written. Repeated calls are no-ops.
        """
        if self._initialised:
            return self._dedup_result

        self.check_post_filename_and_extension()
        self.check_hash()
        self.expires = self.get_expiration()

        self.file = Mapper('files')
        if self.extension == DOCUMENT_TYPE:
            self._resolve_document(create_if_missing)
        elif self.extension == STYLESHEET_TYPE:
            self._resolve_stylesheet()
        else:
            self._dedup_result = self._resolve_asset(create_if_missing)

        self._initialised = True
        return self._dedup_result

    def _resolve_document(self, create_if_missing):
        # Notes are owner-bound, unlike assets which anyone may reference
        user_provided_name = bool(self.filename)
        if not user_provided_name:
            if not create_if_missing:
                raise InvalidRequest('A filename is required')
            self.filename = self._generate_filename()

        self.file.load(filename=self.filename, filetype=self.extension)
        if self.file.found and not self._owns(self.file.row):
            if not create_if_missing:
                raise OwnershipConflict('This note belongs to another user')
            self.filename = self._generate_filename()
        elif user_provided_name and self.file.not_found:
            # Don't let callers pick arbitrary new names
            if not create_if_missing:
                raise NotFound('Note not found')
            self.filename = self._generate_filename()

        # The settled name may still have been taken by someone else meanwhile
        self.file.load(filename=self.filename, filetype=self.extension)
        if self.file.found and not self._owns(self.file.row):
            raise OwnershipConflict('This note belongs to another user')

    def _resolve_stylesheet(self):
        prefix = self.get_css_filename()
        if self.hash:
            existing = self._find_css_chunk(self.hash)
            if existing is not None:
                self.filename = existing.filename
            else:
                self.filename = prefix + self.hash[:CSS_HASH_SUFFIX_LENGTH]
        else:
            self.filename = prefix
        self.file.load(filetype=self.extension, filename=self.filename)

    def _resolve_asset(self, create_if_missing):
        self.file.load(filetype=self.extension, hash=self.hash)
        if self.file.found:
            self.filename = self.file.row['filename']
            self.deduplicated = True
            return self.return_success_url()
        if not create_if_missing:
            raise NotFound('File not found')
        self.filename = self._generate_filename()
        return None

    def _owns(self, row):
        return row.get('user_id') == self.user.id

    def _generate_filename(self):
        for _ in range(MAX_FILENAME_ATTEMPTS):
            candidate = random_identifier(filename_length(self.extension))
            taken = (
                db.session.query(FileRecord.id)
                .filter_by(filename=candidate, filetype=self.extension)
                .first()
            )
            if taken is None:
                return candidate
            logger.warning('Generated filename %s.%s already exists, retrying', candidate, self.extension)
        raise WriteFailure('Unable to allocate an unused filename')

    # -------- stylesheets --------
    def get_css_filename(self):
        """The owner's stylesheet prefix, a salted hash of their uid."""
        if self._css_filename is None:
            self._css_filename = deterministic_identifier(self.hash_salt, self.user.uid)
        return self._css_filename

    def _css_chunks_query(self):
        return FileRecord.query.filter(
            FileRecord.filetype == STYLESHEET_TYPE,
            FileRecord.filename.startswith(self.get_css_filename(), autoescape=True),
        )

    def _find_css_chunk(self, file_hash):
        return (
            self._css_chunks_query()
            .filter(FileRecord.hash == file_hash)
            .order_by(FileRecord.id)
            .first()
        )

    def css_chunks(self):
        records = self._css_chunks_query().order_by(FileRecord.filename).all()
        return [
            {'url': self.get_display_url(record.filename, record.filetype), 'hash': record.hash}
            for record in records
        ]

    # -------- operations --------
    def create_note(self):
        if self.post.get('filetype') != DOCUMENT_TYPE:
            raise InvalidRequest('Notes must use the html filetype')
        template = self.post.get('template')
        if not isinstance(template, dict):
            raise InvalidRequest('Missing note template')
        self.init_file()

        css_urls = self._template_css_urls(template.get('css'))
        if not css_urls:
            # Legacy single stylesheet
            css_urls = [self.get_display_url(self.get_css_filename(), STYLESHEET_TYPE)]

        contents = render_note(
            template,
            css_urls,
            self.paths.base_web_url,
            plugin_version=self.post.get('pluginVersion', ''),
        )
        data = contents.encode('utf-8')
        # The stored hash is of the final document, not what the client sent
        self.hash = sha1_bytes(data)
        self.save_file(data, encrypted=template.get('encrypted') is not False)

        result = self.return_success_url()
        if self.post.get('debug') == DEBUG_RETURN_HTML:
            result['html'] = contents
        return result

    def _template_css_urls(self, css):
        if not isinstance(css, list):
            return []
        urls = []
        for item in css:
            url = item.get('url') if isinstance(item, dict) else None
            if not isinstance(url, str) or not url:
                continue
            if url.startswith(('http://', 'https://')):
                urls.append(url)
            elif url.startswith('/'):
                urls.append(self.paths.base_web_url + url)
            else:
                urls.append(f'{self.paths.base_web_url}/{url}')
        return urls

    def upload(self, content):
        existing = self.init_file()
        if existing is not None:
            return existing

        if self.hash is not None and self.hash != sha1_bytes(content):
            raise InvalidRequest('Content hash does not match the uploaded file')

        self.save_file(content)
        return self.return_success_url()

    def save_file(self, contents, encrypted=False):
        """Write the bytes, purge stale cached copies and upsert the index row."""
        if not self._initialised or self.file is None:
            raise StoreInitError('File must be initialised before it is saved')

        folder, file_path = self.get_full_file_path()
        try:
            self.storage.write_file(folder, file_path, contents)
        except OSError as e:
            logger.exception('Failed to write %s', file_path)
            raise WriteFailure('Failed to save file') from e

        purge_quietly(self.edge_cache, [self.get_display_url(), self.get_file_url()])

        date = utcnow()
        if self.file.not_found:
            self.file.set({
                'user_id': self.user.id,
                'filename': self.filename,
                'filetype': self.extension,
                'created': date,
            })
        self.file.set({
            'bytes': len(contents),
            'encrypted': bool(encrypted),
            'expires': self.expires,
            'hash': self.hash or sha1_bytes(contents),
            'updated': date,
        })
        try:
            saved = self.file.save()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception('Failed to save index row for %s.%s', self.filename, self.extension)
            raise WriteFailure('Failed to save file record') from e
        if not saved:
            raise WriteFailure('Failed to save file record')
        return self.file.row

    def delete_file(self):
        """Delete the caller's note. Deleting a note you don't own is a silent no-op."""
        if self.post.get('filetype') != DOCUMENT_TYPE:
            raise NotFound('Only notes can be deleted')

        self.check_post_filename_and_extension()
        if not self.filename:
            raise InvalidRequest('A filename is required')

        self.file = Mapper('files')
        self.file.load(filename=self.filename, filetype=self.extension)
        if self.file.not_found or not self._owns(self.file.row):
            logger.info('Ignoring delete of %s by user %s', self.filename, self.user.id)
            return {'success': True, 'deleted': False}

        _, file_path = self.get_full_file_path()
        self.storage.delete_file(file_path)
        purge_quietly(self.edge_cache, [self.get_display_url()])

        db.session.execute(
            delete(FileRecord).where(
                FileRecord.filetype == DOCUMENT_TYPE,
                FileRecord.filename == self.filename,
            )
        )
        db.session.commit()
        return {'success': True, 'deleted': True}

    # -------- dedup probes --------
    def check_file(self, item=None):
        """Is a file with this exact content already stored? Returns its URL if so."""
        item = item if isinstance(item, dict) else {}
        filetype = item.get('filetype') or self.post.get('filetype')
        file_hash = item.get('hash') or self.post.get('hash')

        if filetype == STYLESHEET_TYPE:
            if file_hash:
                record = self._find_css_chunk(file_hash)
                if record is not None:
                    return self.return_success_url(self.get_display_url(record.filename, record.filetype))
        elif isinstance(filetype, str) and isinstance(file_hash, str) and filetype and file_hash:
            probe = Mapper('files')
            probe.load(filetype=filetype, hash=file_hash)
            if probe.found:
                return self.return_success_url(
                    self.get_display_url(probe.row['filename'], probe.row['filetype'])
                )

        return {'success': False, 'url': None}

    def check_files(self):
        files = self.post.get('files')
        result = []
        for item in files if isinstance(files, list) else []:
            if not isinstance(item, dict):
                continue
            result.append(dict(item, url=self.check_file(item)['url']))
        return {
            'success': True,
            'files': result,
            'css': self.css_chunks(),
        }

    def check_css(self):
        chunks = self.css_chunks()
        return {
            'success': bool(chunks),
            'css': chunks,
        }

    # -------- paths & urls --------
    def hydrate(self, filename=None, extension=None):
        return filename or self.filename, extension or self.extension

    def get_display_url(self, filename=None, extension=None):
        """URL given to visitors; notes have no extension or folder."""
        return self.paths.display_url(*self.hydrate(filename, extension))

    def get_file_url(self, filename=None, extension=None):
        """Actual URL of the stored file."""
        return self.paths.file_url(*self.hydrate(filename, extension))

    def get_full_file_path(self, filename=None, extension=None):
        return self.paths.full_file_path(*self.hydrate(filename, extension))

    def return_success_url(self, url=None):
        return {
            'success': True,
            'url': url or self.get_display_url(),
        }
