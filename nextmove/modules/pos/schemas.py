from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from nextmove.models.enums import PosSessionStatus


class PosSessionOpenRequest(BaseModel):
    initial_cash: Decimal = Field(Decimal("0"), ge=0)
    station_id: str | None = Field(None, max_length=50)


class PosSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    agent_id: uuid.UUID
    station_id: str | None = None
    opened_at: datetime
    closed_at: datetime | None = None
    initial_cash: Decimal
    total_sales: Decimal
    status: PosSessionStatus
