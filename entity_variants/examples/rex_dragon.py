from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import random

from entity_variants.config import VariantConfig
from entity_variants.fragments.fetch import MemoryFetcher
from entity_variants.overlay import ParameterOverlay
from entity_variants.registry import VariantRegistry
from entity_variants.reload import VariantReloader
from entity_variants.selector import select_random

DEFAULT_VARIANT = "normal"

# Base definitions shipped with the game.
REX_BASE: Dict[str, Any] = {
    "rex": [
        {"variantName": "normal", "hp": "10", "speed": 0.3},
        {"variantName": "fire", "hp": "20", "speed": 0.35, "immune": ["fire", "lava"]},
    ]
}
DRAGON_BASE: Dict[str, Any] = {
    "dragon": [
        {"variantName": "normal", "hp": "80", "canFly": True},
        {"variantName": "ice", "hp": "90", "canFly": True, "breath": {"type": "frost", "range": 6}},
    ]
}

# Datapack overrides: one new variant each plus a repeat of a base definition.
REX_DATA: Dict[str, Any] = {
    "rex": [
        {"variantName": "swamp", "hp": "15", "speed": 0.25},
        {"variantName": "normal", "hp": "10", "speed": 0.3},
    ]
}
DRAGON_DATA: Dict[str, Any] = {
    "dragon": [
        {"variantName": "ender", "hp": "200", "canFly": True},
    ]
}


def demo_config() -> VariantConfig:
    return VariantConfig(entity_names=("dragon", "rex"))


def demo_fetcher(config: Optional[VariantConfig] = None) -> MemoryFetcher:
    config = config or demo_config()
    rex_mod, rex_data = config.entity_sources("rex")
    dragon_mod, dragon_data = config.entity_sources("dragon")
    return MemoryFetcher(
        {
            rex_mod: REX_BASE,
            rex_data: REX_DATA,
            dragon_mod: DRAGON_BASE,
            dragon_data: DRAGON_DATA,
        }
    )


def build_demo(
    seed: Optional[int] = None,
) -> Tuple[VariantRegistry, ParameterOverlay, Dict[str, str]]:
    """Load both entities, assign each a random variant and bind its overlay.

    Returns the registry, the overlay and the entity -> assigned variant map.
    """
    config = demo_config()
    registry = VariantRegistry()
    reloader = VariantReloader(registry, demo_fetcher(config), config)
    reloader.reload_all()

    rng = random.Random(seed)
    overlay = ParameterOverlay(registry)
    assigned: Dict[str, str] = {}
    for entity in config.entity_names:
        name = select_random(registry.variant_names(entity), DEFAULT_VARIANT, rng=rng)
        overlay.select(entity, name).declare("hp").commit()
        assigned[entity] = name
    return registry, overlay, assigned
