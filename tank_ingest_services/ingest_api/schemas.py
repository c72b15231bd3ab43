from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class LeituraIn(BaseModel):
    # Se construye después de validate_reading_payload(); niveles ya convertidos a float.
    esp_id: str = Field(..., min_length=8, max_length=8)
    nivel_tanque1: float
    nivel_tanque2: float


class Leitura(BaseModel):
    id: int
    esp_id: str
    nivel_tanque1: float
    nivel_tanque2: float
    data_hora: datetime


class LeituraCreated(BaseModel):
    success: bool = True
    message: str = "Leitura registrada com sucesso"
    data: Leitura


class LeiturasResult(BaseModel):
    success: bool = True
    count: int
    esp_id: str
    periodo: str
    data: List[Leitura] = Field(default_factory=list)


class RootStatus(BaseModel):
    message: str
    status: str
    version: str
    timestamp: datetime


class DatabaseStatus(BaseModel):
    database: str
    timestamp: datetime


class Liveness(BaseModel):
    status: str
    unhandled_errors: int
