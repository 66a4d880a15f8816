"""
Utilidades para manejo de fechas en el calendario local de la obra.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


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
    def local_today(tz_name: str, now: Optional[datetime] = None) -> date:
        """
        Dia calendario actual en la zona `tz_name` (p.ej. Asia/Tokyo).

        Args:
            tz_name: Nombre IANA de la zona horaria
            now: Instante de referencia (aware); por defecto ahora

        Returns:
            date: Fecha local
        """
        reference = now or DateTimeUtils.now_utc()
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=timezone.utc)
        return reference.astimezone(ZoneInfo(tz_name)).date()

    @staticmethod
    def day_window(from_day: date, to_day: date) -> tuple[datetime, datetime]:
        """
        Convierte un periodo de dias inclusivo en un intervalo semiabierto
        [from_day 00:00, (to_day + 1) 00:00).
        """
        start = datetime.combine(from_day, time.min)
        end = datetime.combine(to_day + timedelta(days=1), time.min)
        return start, end

    @staticmethod
    def parse_iso_date(value: str) -> Optional[date]:
        """
        Convierte un string YYYY-MM-DD a date.

        Returns:
            Optional[date]: Fecha o None si el formato no es valido
        """
        try:
            return date.fromisoformat((value or "").strip())
        except (ValueError, TypeError):
            return None
