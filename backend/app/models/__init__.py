# Sleep Journal Database Models
from app.models.user import User
from app.models.sleep_entry import SleepEntry

__all__ = [
    "User",
    "SleepEntry",
]
