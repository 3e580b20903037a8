import pytest

from entity_variants.errors import OverlayBindingNotFound
from entity_variants.overlay import NULL, UNKNOWN, ParameterOverlay
from entity_variants.registry import VariantRegistry
from tests.test_utils import REX_SOURCE_1, make_registry, make_rex_registry


def test_commit_before_load_raises() -> None:
    overlay = ParameterOverlay(VariantRegistry())
    with pytest.raises(OverlayBindingNotFound) as info:
        overlay.select("dragon", "normal").declare("hp").commit()
    assert info.value.entity_key == "dragon"
    assert info.value.variant_name == "normal"
    assert isinstance(info.value, LookupError)


def test_commit_copies_declared_keys_only() -> None:
    registry = make_registry(
        {"rex.json": {"rex": [{"variantName": "fire", "hp": "20", "speed": "0.4", "tint": "red"}]}}
    )
    registry.load_variants("rex", ["rex.json"])
    overlay = ParameterOverlay(registry)
    binding = overlay.select("rex", "fire").declare("hp").declare("speed").commit()
    assert dict(binding) == {"hp": "20", "speed": "0.4"}
    assert overlay.get("fire", "hp") == "20"
    assert overlay.get("fire", "tint") == UNKNOWN


def test_get_never_raises() -> None:
    overlay = ParameterOverlay(VariantRegistry())
    assert overlay.get("nothing", "hp") == UNKNOWN
    assert overlay.get("nothing", "hp", default=NULL) == "null"


def test_declared_key_missing_from_record_is_not_stored() -> None:
    overlay = ParameterOverlay(make_rex_registry())
    overlay.select("rex", "normal").declare("hp", "armor").commit()
    assert overlay.bindings("normal") == {"hp": "10"}
    assert overlay.get("normal", "armor") == UNKNOWN


def test_declare_is_idempotent_and_ordered() -> None:
    builder = ParameterOverlay(VariantRegistry()).select("rex", "normal")
    builder.declare("hp", "speed").declare("hp")
    assert builder.declared == ["hp", "speed"]


def test_recommit_replaces_binding() -> None:
    overlay = ParameterOverlay(make_rex_registry())
    overlay.select("rex", "normal").declare("hp", "variantName").commit()
    overlay.select("rex", "normal").declare("variantName").commit()
    assert overlay.bindings("normal") == {"variantName": "normal"}


def test_overlay_survives_reload() -> None:
    registry = make_registry({"rex.json": REX_SOURCE_1})
    registry.load_variants("rex", ["rex.json"])
    overlay = ParameterOverlay(registry)
    overlay.select("rex", "normal").declare("hp").commit()
    registry.load_variants("rex", [])
    assert overlay.get("normal", "hp") == "10"
    with pytest.raises(OverlayBindingNotFound):
        overlay.select("rex", "normal").declare("hp").commit()


def test_bind_all_and_clear() -> None:
    overlay = ParameterOverlay(make_rex_registry())
    count = overlay.bind_all("rex", lambda record: {"label": f"{record.variant_name}:{record.get('hp')}"})
    assert count == 2
    assert overlay.get("fire", "label") == "fire:20"
    assert overlay.variant_names() == ["fire", "normal"]
    overlay.clear()
    assert "fire" not in overlay
