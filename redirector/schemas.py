from datetime import datetime
from pydantic import BaseModel

class AddResponse(BaseModel):
    id: str
    url: str
    expires: int

class GetResponse(BaseModel):
    url: str
    expires: datetime

class ErrorResponse(BaseModel):
    error: str
