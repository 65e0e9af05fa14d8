from pydantic import BaseModel
from typing import List

class Following(BaseModel):
    user_id: str
    following_ids: List[str]
