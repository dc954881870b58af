import re
from datetime import date, datetime
from typing import Any, Optional


class TypeDetector:
    """
    Checks that a payload value fits the data type a field declares.

    Strings are accepted for numeric, boolean and temporal fields when
    they parse cleanly, since payloads usually arrive as JSON text.
    """

    BOOL_TRUE_VARIANTS = {"true", "yes"}
    BOOL_FALSE_VARIANTS = {"false", "no"}

    INT_PATTERN = re.compile(r"^[+-]?\d+$")

    DATETIME_FORMATS = [
        "%Y-%m-%dT%H:%M:%SZ",
        "%Y-%m-%dT%H:%M:%S.%fZ",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d %H:%M:%S.%f",
    ]

    DATE_FORMATS = [
        "%Y-%m-%d",
        "%d/%m/%Y",
        "%Y/%m/%d",
    ]

    @classmethod
    def detect(cls, value: Any) -> str:
        if value is None:
            return "null"

        if isinstance(value, bool):
            return "bool"

        if isinstance(value, int):
            return "int"

        if isinstance(value, float):
            return "float"

        if isinstance(value, datetime):
            return "datetime"

        if isinstance(value, date):
            return "date"

        if isinstance(value, list):
            return "array"

        if isinstance(value, dict):
            return "object"

        return "str"

    @classmethod
    def coerce(cls, value: Any, target_type: str) -> tuple[Any, bool]:
        """
        Convert a value to ``target_type``.

        Returns:
            (converted value, success flag). On failure the value is
            returned unchanged.
        """
        if value is None:
            return None, True

        detected = cls.detect(value)
        if detected == target_type:
            return value, True

        if target_type == "str":
            # Structured values never silently become text
            if detected in ("array", "object"):
                return value, False
            return value, isinstance(value, str)

        if target_type == "float" and detected == "int":
            return float(value), True

        # BOOLEAN columns read back as 0/1
        if target_type == "bool" and detected == "int" and value in (0, 1):
            return bool(value), True

        if not isinstance(value, str):
            return value, False

        text = value.strip()

        if target_type == "bool":
            if text.lower() in cls.BOOL_TRUE_VARIANTS:
                return True, True
            if text.lower() in cls.BOOL_FALSE_VARIANTS:
                return False, True
            return value, False

        if target_type == "int":
            if cls.INT_PATTERN.match(text):
                return int(text), True
            return value, False

        if target_type == "float":
            try:
                return float(text), True
            except ValueError:
                return value, False

        if target_type == "datetime":
            dt = cls._parse(text, cls.DATETIME_FORMATS + cls.DATE_FORMATS)
            if dt:
                return dt, True
            return value, False

        if target_type == "date":
            dt = cls._parse(text, cls.DATE_FORMATS)
            if dt:
                return dt.date(), True
            return value, False

        return value, False

    @classmethod
    def conforms(cls, value: Any, target_type: str) -> bool:
        return cls.coerce(value, target_type)[1]

    @classmethod
    def _parse(cls, value: str, formats: list) -> Optional[datetime]:
        for fmt in formats:
            try:
                return datetime.strptime(value, fmt)
            except ValueError:
                continue
        return None
