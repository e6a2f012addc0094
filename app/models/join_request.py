from app.db.mongo import JOIN_REQUESTS
from app.models.base import MongoModel, PyObjectId


class JoinRequest(MongoModel):
    """A user's pending request to join a plan; deleted once resolved."""
    collection_name = JOIN_REQUESTS

    plan_id: PyObjectId
    user_id: str

    @property
    def requested_at(self):
        return self.created_at
