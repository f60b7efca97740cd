import json
import logging
from collections.abc import Callable, Iterable, Mapping

from core.dtos import ItemDTO, ItemExtra

logger = logging.getLogger(__name__)


def parse_extra(raw) -> ItemExtra:
    """Parse the items.extra side-channel once; malformed payloads become an empty ItemExtra."""
    if raw is None or raw == "":
        return ItemExtra()
    data = raw
    if isinstance(raw, bytes | str):
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.debug("Unparseable extra payload skipped: %s", exc)
            return ItemExtra()
    if not isinstance(data, Mapping):
        return ItemExtra()

    owner = data.get("owner_playerUuid")
    if not owner and isinstance(data.get("owner"), Mapping):
        owner = data["owner"].get("playerUuid")
    reforge = data.get("reforge")
    return ItemExtra(
        owner_player_uuid=str(owner) if owner else None,
        reforge=str(reforge) if reforge else None,
    )


def row_to_item(row: Mapping) -> ItemDTO:
    # sqlite3.Row has no .get(); index every column directly
    price = row["price"]
    return ItemDTO(
        id=int(row["id"] or 0),
        uuid=str(row["uuid"] or ""),
        name=str(row["name"] or ""),
        color=str(row["color"]) if row["color"] else None,
        rarity=str(row["rarity"]) if row["rarity"] else None,
        price=price if isinstance(price, int | float) and not isinstance(price, bool) else None,
        extra=parse_extra(row["extra"]),
    )


def rows_to(dto_fn: Callable[[Mapping], object], rows: Iterable[Mapping]) -> list[object]:
    return [dto_fn(row) for row in rows]
