import uuid

from models.base import BaseModel
from common.db import db


def new_uid():
    return uuid.uuid4().hex


class User(BaseModel):
    __tablename__ = 'users'

    username = db.Column(db.String(80), unique=True, nullable=False)
    password = db.Column(db.String(256), nullable=False)
    # 稳定身份标识，样式表文件名前缀由它派生
    uid = db.Column(db.String(32), unique=True, nullable=False, default=new_uid)
