"""
Utilidades para manejo de fechas y horas.

GatherContent entrega fechas en dos formatos:
- objeto {"date": "2016-01-20 10:15:00.000000", "timezone": "UTC", ...}
- string ISO / "Y-m-d H:i:s"
Todas las comparaciones de frescura se hacen sobre timestamps numericos.
"""
from datetime import datetime, timezone
from typing import Any, Optional, Union

from dateutil import parser as date_parser

from gcsync.shared.constants.sync_constants import MYSQL_DATETIME_FORMAT


class DateTimeUtils:
    """Clase de utilidades para operaciones con fechas y horas."""
    
    @staticmethod
    def now_utc() -> datetime:
        """
        Obtiene la fecha y hora actual en UTC.
        
        Returns:
            datetime: Fecha y hora actual en UTC
        """
        return datetime.now(timezone.utc)
    
    @staticmethod
    def now_local() -> datetime:
        """Fecha y hora local actual (naive), equivalente a current_time('mysql')."""
        return datetime.now()
    
    @staticmethod
    def from_mysql_string(value: str) -> Optional[datetime]:
        """
        Convierte un string "YYYY-MM-DD HH:MM:SS" a datetime.
        
        Args:
            value: Fecha en formato MySQL
            
        Returns:
            Optional[datetime]: datetime naive o None si el año es cero o invalido
        """
        if not value or not str(value)[:4].isdigit() or int(str(value)[:4]) <= 0:
            return None
        try:
            return datetime.strptime(str(value)[:19], MYSQL_DATETIME_FORMAT)
        except ValueError:
            return None


def gc_date_string(value: Any) -> Optional[str]:
    """
    Extrae el string de fecha de un valor GatherContent.

    Acepta dict con clave "date", objetos con atributo .date o strings.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("date")
    elif hasattr(value, "date") and not isinstance(value, (str, datetime)):
        value = getattr(value, "date")
    if value is None or value == "":
        return None
    return str(value)


def parse_timestamp(value: Any) -> Optional[float]:
    """
    Convierte un valor de fecha a timestamp Unix.

    Fechas sin zona horaria se interpretan en UTC (GatherContent siempre
    reporta UTC). Retorna None si el valor esta vacio o no se puede parsear.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        dt = value
    else:
        raw = gc_date_string(value)
        if not raw:
            return None
        try:
            dt = date_parser.parse(raw)
        except (ValueError, OverflowError, TypeError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def format_mysql_datetime(timestamp: Union[int, float], gmt: bool) -> str:
    """
    Formatea un timestamp como "YYYY-MM-DD HH:MM:SS".

    Args:
        timestamp: Timestamp Unix
        gmt: True para convertir en UTC, False para hora local

    Returns:
        str: Fecha formateada
    """
    if gmt:
        dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    else:
        dt = datetime.fromtimestamp(timestamp)
    return dt.strftime(MYSQL_DATETIME_FORMAT)
