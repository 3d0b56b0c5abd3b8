from datetime import date

from pydantic import BaseModel


class NextNumberResponse(BaseModel):
    family: str
    financial_year: str
    on_date: date
    next_number: str


class CurrentSequenceResponse(BaseModel):
    family: str
    financial_year: str
    current_sequence: int
