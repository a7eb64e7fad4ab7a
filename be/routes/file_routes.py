from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from services.file_store import FileStore
from services.user_service import UserService
from common.response import success, fail

file_bp = Blueprint('file', __name__)


def _file_store(post):
    user = UserService.get_user(int(get_jwt_identity()))
    if user is None:
        return None
    return FileStore(user, post)


def _json():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@file_bp.route('/create-note', methods=['POST'])
@jwt_required()
def create_note():
    store = _file_store(_json())
    if store is None:
        return fail("User not found", code=401, status=401)
    return success(store.create_note())

@file_bp.route('/upload', methods=['POST'])
@jwt_required()
def upload_file():
    content = request.files.get("content")
    if not content:
        return fail("No file uploaded", code=400, status=400)
    store = _file_store(request.form.to_dict())
    if store is None:
        return fail("User not found", code=401, status=401)
    return success(store.upload(content.read()))

@file_bp.route('/delete', methods=['POST'])
@jwt_required()
def delete_file():
    store = _file_store(_json())
    if store is None:
        return fail("User not found", code=401, status=401)
    return success(store.delete_file())

@file_bp.route('/check-file', methods=['POST'])
@jwt_required()
def check_file():
    store = _file_store(_json())
    if store is None:
        return fail("User not found", code=401, status=401)
    return success(store.check_file())

@file_bp.route('/check-files', methods=['POST'])
@jwt_required()
def check_files():
    store = _file_store(_json())
    if store is None:
        return fail("User not found", code=401, status=401)
    return success(store.check_files())

@file_bp.route('/check-css', methods=['POST'])
@jwt_required()
def check_css():
    store = _file_store(_json())
    if store is None:
        return fail("User not found", code=401, status=401)
    return success(store.check_css())
