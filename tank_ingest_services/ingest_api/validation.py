"""Validación de payloads de leituras.

Funciones puras: no tocan BD ni request. El handler decide qué hacer con el
``ErrorKind`` devuelto.
"""

from __future__ import annotations

import math
import re
from typing import Any, List, Optional

from .errors import ErrorKind

# Campos requeridos en el payload del ESP32
REQUIRED_FIELDS = ["esp_id", "nivel_tanque1", "nivel_tanque2"]

LEVEL_FIELDS = ["nivel_tanque1", "nivel_tanque2"]

# Solo dígitos ASCII: \d aceptaría dígitos Unicode.
_ESP_ID_RE = re.compile(r"[0-9]{8}")

# Decimal ASCII con exponente opcional, como un número JSON.
_NUMBER_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def validate_esp_id(esp_id: Any) -> bool:
    """True si ``esp_id`` es un str de exactamente 8 dígitos ASCII."""
    if not isinstance(esp_id, str):
        return False
    return _ESP_ID_RE.fullmatch(esp_id) is not None


def missing_fields(payload: Any) -> List[str]:
    """Campos requeridos ausentes. Un payload que no es dict no tiene ninguno."""
    if not isinstance(payload, dict):
        return list(REQUIRED_FIELDS)
    # Chequeo explícito de presencia: un nivel 0 es válido.
    return [field for field in REQUIRED_FIELDS if field not in payload]


def parse_level(value: Any) -> Optional[float]:
    """Convierte un nivel a float; ``None`` si no es un número finito.

    Acepta números JSON y strings decimales ASCII ("12.5", "-3", "1e2").
    Rechaza bool, null, NaN, infinitos y lo que ``float()`` aceptaría sin
    ser un número JSON ("1_000", dígitos de ancho completo).
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if _NUMBER_RE.fullmatch(value) is None:
            return None
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def validate_reading_payload(payload: Any) -> Optional[ErrorKind]:
    """Valida un payload de leitura.

    Orden: presencia de campos, formato de esp_id, niveles numéricos. Se
    reporta el primer fallo.

    Returns:
        ``None`` si es válido, o el ``ErrorKind`` de la regla violada.
    """
    if missing_fields(payload):
        return ErrorKind.MISSING_FIELD

    if not validate_esp_id(payload["esp_id"]):
        return ErrorKind.INVALID_ESP_ID

    for field in LEVEL_FIELDS:
        if parse_level(payload[field]) is None:
            return ErrorKind.INVALID_NUMBER

    return None
