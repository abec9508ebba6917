"""Infrastructure ORM Models"""

from .user_model import UserModel
from .account_model import AccountModel
from .session_model import SessionModel

__all__ = [
    'UserModel',
    'AccountModel',
    'SessionModel'
]
