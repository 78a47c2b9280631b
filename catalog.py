from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from models import Role, Team

BRIGIDS_BLESSING = "brigids_blessing"
CAILLEACHS_GAZE = "cailleachs_gaze"
CEOL = "ceol_of_the_midnight_cairn"
FAERIE_THISTLE = "faerie_thistle"
WOLFBANE_ROOT = "wolfbane_root"
YEW_BERRIES = "yew_berries"
HAZEL_OF_WISDOM = "hazel_of_wisdom"

INGREDIENT_LABELS = {
    BRIGIDS_BLESSING: "Brigid's Blessing",
    CAILLEACHS_GAZE: "Cailleach's Gaze",
    CEOL: "Ceol of the Midnight Cairn",
    FAERIE_THISTLE: "Faerie Thistle",
    WOLFBANE_ROOT: "Wolfbane Root",
    YEW_BERRIES: "Yew Berries",
    HAZEL_OF_WISDOM: "Hazel of Wisdom",
}

DEFAULT_HEROES = [
    "good_finn",
    "good_oisin",
    "good_cu_chullain",
    "good_brigid",
    "good_eriu",
    "evil_fair_dohrik",
    "evil_banshee",
    "evil_dullahan",
]

HERO_NAMES = {
    "finn": "Fionn mac Cumhaill",
    "oisin": "Oisín",
    "cu_chullain": "Cú Chulainn",
    "brigid": "Brigid",
    "eriu": "Ériu",
    "fair_dohrik": "Fear Doirche",
    "banshee": "The Banshee",
    "dullahan": "The Dullahan",
}

IMAGE_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)


@dataclass
class IngredientSpec:
    name: str
    image: Optional[str] = None


@dataclass
class Catalog:
    ingredients: List[IngredientSpec] = field(default_factory=list)
    roles: List[Role] = field(default_factory=list)

    @property
    def ingredient_names(self) -> List[str]:
        return [i.name for i in self.ingredients]


def ingredient_label(name: str) -> str:
    return INGREDIENT_LABELS.get(name, name.replace("_", " ").title())


def hero_display_name(role_id: str) -> str:
    base = re.sub(r"^(evil_|good_)", "", role_id, flags=re.IGNORECASE)
    if base in HERO_NAMES:
        return HERO_NAMES[base]
    return " ".join(w.capitalize() for w in base.split("_"))


def hero_team(role_id: str) -> Team:
    return Team.EVIL if role_id.lower().startswith("evil_") else Team.GOOD


def default_catalog() -> Catalog:
    return Catalog(
        ingredients=[IngredientSpec(name=n) for n in INGREDIENT_LABELS],
        roles=[Role(id=h, name=hero_display_name(h), team=hero_team(h)) for h in DEFAULT_HEROES],
    )


def _images(directory: Path) -> List[str]:
    if not directory.is_dir():
        return []
    return sorted(p.name for p in directory.iterdir() if p.is_file() and IMAGE_RE.search(p.name))


def list_assets(assets_dir: Path) -> Dict[str, List[str]]:
    return {
        "heroes": _images(assets_dir / "heroes"),
        "ingredients": _images(assets_dir / "ingredients"),
    }


def load_catalog(assets_dir: Optional[Path]) -> Catalog:
    """Build the catalog from image files; each part falls back to the default when no asset is found."""
    fallback = default_catalog()
    if assets_dir is None:
        return fallback

    ingredients = [
        IngredientSpec(name=IMAGE_RE.sub("", img), image=f"/assets/ingredients/{img}")
        for img in _images(assets_dir / "ingredients")
    ]
    roles = []
    for img in _images(assets_dir / "heroes"):
        base = IMAGE_RE.sub("", img)
        roles.append(Role(id=base, name=hero_display_name(base), team=hero_team(base),
                          image=f"/assets/heroes/{img}"))

    return Catalog(
        ingredients=ingredients or fallback.ingredients,
        roles=roles or fallback.roles,
    )
