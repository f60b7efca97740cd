from enum import Enum


class PieceKind(Enum):
    HELMET = "helmet"
    CHESTPLATE = "chestplate"
    LEGGINGS = "leggings"
    BOOTS = "boots"

    @classmethod
    def from_any(cls, value):
        """Parse a query-string piece filter; ``all``/empty means no filter (None)."""
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in ("", "all"):
                return None
            legacy_map = {
                "helm": cls.HELMET,
                "chest": cls.CHESTPLATE,
                "legs": cls.LEGGINGS,
                "pants": cls.LEGGINGS,
                "boot": cls.BOOTS,
            }
            if normalized in legacy_map:
                return legacy_map[normalized]
            for member in cls:
                if member.value == normalized:
                    return member
        raise ValueError(f"Cannot parse {value!r} into {cls.__name__}")


# Fixed slot order used for set output and classification priority.
PIECE_ORDER = (PieceKind.HELMET, PieceKind.CHESTPLATE, PieceKind.LEGGINGS, PieceKind.BOOTS)


class ParamPolicy(Enum):
    """How an endpoint answers a missing or malformed parameter.

    STRICT answers 400; LENIENT degrades to "no filter" or an empty payload.
    """

    STRICT = "strict"
    LENIENT = "lenient"

    @classmethod
    def from_any(cls, value):
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            legacy_map = {"reject": cls.STRICT, "error": cls.STRICT, "empty": cls.LENIENT, "ignore": cls.LENIENT}
            if normalized in legacy_map:
                return legacy_map[normalized]
            for member in cls:
                if member.value == normalized:
                    return member
        raise ValueError(f"Cannot parse {value!r} into {cls.__name__}")
