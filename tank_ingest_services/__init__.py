"""Servicio de ingesta de niveles de tanque enviados por dispositivos ESP32."""

__version__ = "1.0.0"
