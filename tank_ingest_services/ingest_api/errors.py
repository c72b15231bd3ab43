"""Taxonomía de errores de la API de leituras.

Cada error lleva su ``ErrorKind``; el status HTTP se deriva del kind y los
exception handlers de ``main.py`` lo renderizan como JSON.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    MISSING_FIELD = "MissingField"
    INVALID_ESP_ID = "InvalidEspId"
    INVALID_NUMBER = "InvalidNumber"
    MALFORMED_PAYLOAD = "MalformedPayload"
    PERSISTENCE_FAILURE = "PersistenceFailure"
    QUERY_FAILURE = "QueryFailure"
    ROUTE_NOT_FOUND = "RouteNotFound"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.MISSING_FIELD: 400,
    ErrorKind.INVALID_ESP_ID: 400,
    ErrorKind.INVALID_NUMBER: 400,
    ErrorKind.MALFORMED_PAYLOAD: 400,
    ErrorKind.PERSISTENCE_FAILURE: 500,
    ErrorKind.QUERY_FAILURE: 500,
    ErrorKind.ROUTE_NOT_FOUND: 404,
}

MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.MISSING_FIELD: "Dados incompletos. Necessário: esp_id, nivel_tanque1, nivel_tanque2",
    ErrorKind.INVALID_ESP_ID: "ESP_ID deve ter exatamente 8 dígitos numéricos",
    ErrorKind.INVALID_NUMBER: "nivel_tanque1 e nivel_tanque2 devem ser valores numéricos",
    ErrorKind.MALFORMED_PAYLOAD: "Corpo da requisição não é um JSON válido",
    ErrorKind.PERSISTENCE_FAILURE: "Erro ao processar leitura",
    ErrorKind.QUERY_FAILURE: "Erro ao buscar leituras",
    ErrorKind.ROUTE_NOT_FOUND: "Rota não encontrada",
}


class LeituraError(Exception):
    """Error base; ``kind`` decide status y mensaje por defecto."""

    def __init__(
        self,
        kind: ErrorKind,
        message: Optional[str] = None,
        *,
        details: Optional[str] = None,
        missing: Optional[List[str]] = None,
    ) -> None:
        self.kind = kind
        self.message = message or MESSAGES[kind]
        self.details = details
        self.missing = missing
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.kind.value,
        }
        if self.missing:
            body["missing"] = list(self.missing)
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailure(LeituraError):
    """Errores de cliente (400): nunca se reintentan."""


class PersistenceFailure(LeituraError):
    def __init__(self, details: str) -> None:
        super().__init__(ErrorKind.PERSISTENCE_FAILURE, details=details)


class QueryFailure(LeituraError):
    def __init__(self, details: str) -> None:
        super().__init__(ErrorKind.QUERY_FAILURE, details=details)
