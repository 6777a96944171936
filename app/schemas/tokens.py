# app/schemas/tokens.py
from pydantic import BaseModel, ConfigDict
from app.schemas.user import UserOut

class Token(BaseModel):
    access_token: str
    token_type: str
    user: UserOut

    model_config = ConfigDict(from_attributes=True)
