from .auth import User, Role
from .deliveries import Delivery

__all__ = [
    'User', 'Role',
    'Delivery',
]
