import os
import re
import logging

from flask import Blueprint, abort, current_app, send_from_directory

from services.paths import CSS_BUCKET, FILES_BUCKET

logger = logging.getLogger(__name__)

public_bp = Blueprint('public', __name__)

_NOTE_NAME = re.compile(r'^[a-z0-9]+$')


@public_bp.route('/v1/ping', methods=['GET'])
def ping():
    # The upload location must exist and be writable
    base_folder = current_app.extensions['paths'].base_folder
    if os.path.isdir(base_folder) and os.access(base_folder, os.W_OK):
        return 'ok'
    logger.error('Base folder %s is not writable', base_folder)
    return '', 500


@public_bp.route('/<filename>', methods=['GET'])
def serve_note(filename):
    paths = current_app.extensions['paths']
    if not _NOTE_NAME.match(filename) or len(filename) < max(1, paths.folder_prefix):
        abort(404)
    folder, _ = paths.full_file_path(filename, 'html')
    return send_from_directory(folder, f'{filename}.html', mimetype='text/html')


@public_bp.route('/css/<path:subpath>', methods=['GET'])
def serve_css(subpath):
    return _serve_bucket(CSS_BUCKET, subpath)


@public_bp.route('/files/<path:subpath>', methods=['GET'])
def serve_files(subpath):
    return _serve_bucket(FILES_BUCKET, subpath)


def _serve_bucket(bucket, subpath):
    root = os.path.join(current_app.extensions['paths'].userfiles_root, bucket)
    return send_from_directory(root, subpath)
