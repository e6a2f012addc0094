from fastapi import Depends

from app.db.mongo import get_db
from app.repositories.store import Store


def get_store(db = Depends(get_db)) -> Store:
    """Repositories for the request, bound to the shared database."""
    return Store(db)
