from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class BanStatus(str, Enum):
    """TCG banlist tier of a card."""

    UNLIMITED = "Unlimited"
    SEMI_LIMITED = "Semi-Limited"
    LIMITED = "Limited"
    FORBIDDEN = "Forbidden"

    @classmethod
    def parse(cls, value: Any) -> "BanStatus":
        """Parse a catalog status label. Absent or unknown labels are Unlimited."""
        if isinstance(value, cls):
            return value
        for status in cls:
            if status.value == value:
                return status
        return cls.UNLIMITED


class DeckSection(str, Enum):
    """The two deck sections a card can be placed in."""

    MAIN = "main"
    EXTRA = "extra"

    @property
    def label(self) -> str:
        return "Main" if self is DeckSection.MAIN else "Extra"


@dataclass(frozen=True, slots=True)
class CardImage:
    id: int
    image_url: str
    image_url_small: str


@dataclass(frozen=True, slots=True)
class Card:
    """
    A card from the external catalog, normalized and banlist-enriched.

    Attributes:
        id: Catalog passcode
        name: Card name exactly as the catalog spells it
        type: Type label (e.g. "Effect Monster", "Spell Card", "Link Monster")
        desc: Card text
        attribute: Monster attribute (DARK, LIGHT, ...)
        race: Monster race or spell/trap subtype
        archetype: Archetype name, if any
        level: Level, rank or link rating
        atk: Attack; numeric, numeric string, "?" or absent
        defense: Defense; same forms as atk
        ban_status: TCG banlist tier, Unlimited when the catalog has none
        images: Artwork URLs
    """

    id: int
    name: str
    type: str
    desc: str = ""
    attribute: str | None = None
    race: str | None = None
    archetype: str | None = None
    level: int | str | None = None
    atk: int | str | None = None
    defense: int | str | None = None
    ban_status: BanStatus = BanStatus.UNLIMITED
    images: tuple[CardImage, ...] = field(default_factory=tuple)

    @property
    def is_forbidden(self) -> bool:
        return self.ban_status is BanStatus.FORBIDDEN

    def to_catalog_dict(self) -> dict[str, Any]:
        """Serialize back to the catalog's JSON shape."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "desc": self.desc,
            "card_images": [
                {
                    "id": image.id,
                    "image_url": image.image_url,
                    "image_url_small": image.image_url_small,
                }
                for image in self.images
            ],
            "banlist_info": {"ban_tcg": self.ban_status.value},
        }
        optional = {
            "attribute": self.attribute,
            "race": self.race,
            "archetype": self.archetype,
            "level": self.level,
            "atk": self.atk,
            "def": self.defense,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data
