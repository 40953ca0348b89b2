from pydantic import BaseModel


class CreditsResponse(BaseModel):
    user_id: int
    credits: int
