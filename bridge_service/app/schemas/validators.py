from pydantic import BaseModel


class ValidatorsResponse(BaseModel):
    currentEra: str
    stakersCount: int
    totalStake: str
