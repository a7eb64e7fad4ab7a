from models.user import User
from common.db import db
from werkzeug.security import generate_password_hash, check_password_hash


class UserService:
    @staticmethod
    def register(username, password):
        if not username or not password:
            return None, "Username and password are required"
        if User.query.filter_by(username=username).first():
            return None, "Username already exists"
        hashed = generate_password_hash(password)
        user = User(username=username, password=hashed)
        db.session.add(user)
        db.session.commit()
        return user, None

    @staticmethod
    def login(username, password):
        user = User.query.filter_by(username=username).first()
        if not user or not check_password_hash(user.password, password):
            return None
        return user

    @staticmethod
    def get_user(user_id):
        return db.session.get(User, user_id)

    @staticmethod
    def get_profile(user_id):
        user = UserService.get_user(user_id)
        if not user:
            return None
        return {"id": user.id, "username": user.username, "uid": user.uid}
