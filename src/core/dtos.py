from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.enums import PieceKind


class DTOBase(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
        strict=True,
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# --- rows -------------------------------------------------------------------


class ItemExtra(DTOBase):
    owner_player_uuid: str | None = None
    reforge: str | None = None


class ItemDTO(DTOBase):
    id: int
    uuid: str
    name: str
    color: str | None = None
    rarity: str | None = None
    price: int | float | None = None
    extra: ItemExtra = ItemExtra()


# --- request criteria -------------------------------------------------------


class ItemFilters(DTOBase):
    """Non-ranking predicates pushed down to the items table."""

    uuids: list[str] | None = None
    uuid: str | None = None
    name_like: str | None = None
    piece: PieceKind | None = None
    color_hex: str | None = None


class SearchCriteria(DTOBase):
    q: str = ""
    color: str | None = None
    tolerance: int = 0
    piece: PieceKind | None = None
    uuid: str | None = None
    uuids: list[str] | None = None
    page: int = 1
    limit: int = 50


class SetCriteria(DTOBase):
    q: str | None = None
    color: str | None = None
    tolerance: int = 0
    page: int = 1
    limit: int = 24


class LegacyCriteria(DTOBase):
    q: str = ""
    color: str | None = None
    tolerance: int = 0
    page: int = 1
    limit: int = 24


# --- responses --------------------------------------------------------------


class OwnerInfo(DTOBase):
    owner_uuid: str | None = None
    owner_username: str | None = None
    owner_avatar_url: str | None = None
    owner_mcuuid_url: str | None = None
    owner_plancke_url: str | None = None
    owner_sky_crypt_url: str | None = None


class ItemOut(OwnerInfo):
    id: int
    uuid: str
    name: str
    color: str | None = None
    rarity: str | None = None
    price: int | float | None = None
    reforge: str


class LegacyItemOut(OwnerInfo):
    uuid: str
    name: str
    color: str | None = None
    rarity: str | None = None


class PieceOut(DTOBase):
    uuid: str
    name: str
    hex: str | None = None


class SetPieces(DTOBase):
    helmet: PieceOut | None = None
    chestplate: PieceOut | None = None
    leggings: PieceOut | None = None
    boots: PieceOut | None = None


class SetGroupOut(OwnerInfo):
    set_label: str
    color: str
    rarity: str | None = None
    is_exact: bool
    avg_dist: float
    max_dist: int
    pieces: SetPieces


T = TypeVar("T")


class PageResponse(DTOBase, Generic[T]):
    ok: bool = True
    page: int
    limit: int
    total: int
    total_pages: int
    items: list[T]


class SearchResponse(PageResponse[ItemOut]):
    target_hex: str | None = None
    tolerance: int = 0


class SetSearchResponse(PageResponse[SetGroupOut]):
    target_hex: str | None = None
    tolerance: int = 0
    requires_helmet: bool | None = None


class LegacySearchResponse(PageResponse[LegacyItemOut]):
    pass


class ErrorResponse(DTOBase):
    ok: bool = False
    error: str
