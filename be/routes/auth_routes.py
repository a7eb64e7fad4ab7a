from flask import Blueprint, request
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from services.user_service import UserService
from common.response import success, fail

auth_bp = Blueprint('auth', __name__)

@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    user, err = UserService.register(data.get('username'), data.get('password'))
    if err:
        return fail(err)
    return success({"user_id": user.id, "username": user.username})

@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = UserService.login(data.get('username'), data.get('password'))
    if not user:
        return fail("Invalid username or password")
    # identity 必须是字符串
    token = create_access_token(identity=str(user.id))
    return success({"token": token})


@auth_bp.route('/profile', methods=['GET'])
@jwt_required()
def profile():
    user_id = int(get_jwt_identity())
    info = UserService.get_profile(user_id)
    if not info:
        return fail("User not found")
    return success(info)
