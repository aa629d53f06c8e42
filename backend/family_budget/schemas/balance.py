from pydantic import BaseModel, Field


class BalanceResponse(BaseModel):
    """50/50 balance in whole roubles. Positive means the participant overpaid."""
    egor_balance: int = Field(serialization_alias="egorBalance")
    syoma_balance: int = Field(serialization_alias="syomaBalance")
    total_spent: int = Field(serialization_alias="totalSpent")
    payments_count: int = Field(serialization_alias="paymentsCount")
