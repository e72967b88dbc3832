from kubedeploy.models.user import User

__all__ = [
    "User",
]
