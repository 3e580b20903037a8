import json
import threading
from pathlib import Path

from entity_variants.config import VariantConfig
from entity_variants.errors import MalformedInputError
from entity_variants.fragments.fetch import DirectoryFetcher, MemoryFetcher
from entity_variants.overlay import ParameterOverlay
from entity_variants.registry import VariantRegistry
from entity_variants.reload import VariantReloader
from entity_variants.types import LoadState
from tests.test_utils import REX_SOURCE_1, REX_SOURCE_2


def _write(root: Path, source_id: str, data: object) -> None:
    path = root.joinpath(*source_id.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_reload_all_from_directory(tmp_path: Path) -> None:
    _write(tmp_path, "variant/entity/rex.json", REX_SOURCE_1)
    _write(tmp_path, "variant/entity/rexdata.json", REX_SOURCE_2)
    _write(tmp_path, "variant/entity/dragon.json", {"dragon": [{"variantName": "ice"}]})
    config = VariantConfig(entity_names=("rex", "dragon"))
    registry = VariantRegistry()
    reloader = VariantReloader(registry, DirectoryFetcher(tmp_path), config)

    report = reloader.reload_all()

    assert report.ok
    assert dict(report.loaded) == {"rex": 2, "dragon": 1}
    assert registry.variant_names("rex") == ["normal", "fire"]
    assert registry.variant_names("dragon") == ["ice"]
    assert reloader.last_report is report


def test_scalar_top_level_key_fails_the_entity() -> None:
    config = VariantConfig(entity_names=("rex",))
    mod, data = config.entity_sources("rex")
    fetcher = MemoryFetcher(
        {
            mod: {"rex": [{"variantName": "normal"}]},
            data: {"rex": [{"variantName": "fire"}], "format": 2},
        }
    )
    registry = VariantRegistry()
    report = VariantReloader(registry, fetcher, config).reload_all()
    assert report.failed["rex"].source_id == data
    assert list(registry.get_variants_for_entity("rex")) == []


def test_failed_entity_reported_not_raised() -> None:
    config = VariantConfig(entity_names=("rex", "dragon"))
    fetcher = MemoryFetcher(
        {
            "variant/entity/rex.json": REX_SOURCE_1,
            "variant/entity/dragondata.json": "{broken",
        }
    )
    registry = VariantRegistry()
    report = VariantReloader(registry, fetcher, config).reload_all()

    assert not report.ok
    assert dict(report.loaded) == {"rex": 1}
    error = report.failed["dragon"]
    assert isinstance(error, MalformedInputError)
    assert error.entity_key == "dragon"
    assert error.source_id == "variant/entity/dragondata.json"
    assert registry.state("dragon") is LoadState.EMPTY
    assert registry.state("rex") is LoadState.LOADED


def test_folder_mode_loads_every_fragment(tmp_path: Path) -> None:
    _write(tmp_path, "variants/rex/a_base.json", REX_SOURCE_1)
    _write(tmp_path, "variants/rex/b_pack.json", REX_SOURCE_2)
    config = VariantConfig(base_path="variants/", entity_names=("rex",), folder_mode=True)
    registry = VariantRegistry()
    reloader = VariantReloader(registry, DirectoryFetcher(tmp_path), config)
    assert reloader.sources_for("rex") == [
        "variants/rex/a_base.json",
        "variants/rex/b_pack.json",
    ]
    reloader.reload_entity("rex")
    assert registry.variant_names("rex") == ["normal", "fire"]


def test_repeated_reloads_keep_one_copy() -> None:
    config = VariantConfig(entity_names=("rex",))
    fetcher = MemoryFetcher({"variant/entity/rex.json": REX_SOURCE_1})
    registry = VariantRegistry()
    reloader = VariantReloader(registry, fetcher, config)
    reloader.reload_all()
    reloader.reload_all()
    assert len(registry.get_variants_for_entity("rex")) == 1


def test_overlay_rebuilt_after_reload() -> None:
    config = VariantConfig(entity_names=("rex",))
    fetcher = MemoryFetcher({"variant/entity/rex.json": REX_SOURCE_1})
    registry = VariantRegistry()
    reloader = VariantReloader(registry, fetcher, config)
    overlay = ParameterOverlay(registry)

    reloader.reload_all()
    overlay.select("rex", "normal").declare("hp").commit()
    fetcher.put(
        "variant/entity/rex.json", {"rex": [{"variantName": "normal", "hp": "12"}]}
    )
    reloader.reload_all()
    assert overlay.get("normal", "hp") == "10"
    overlay.select("rex", "normal").declare("hp").commit()
    assert overlay.get("normal", "hp") == "12"


def test_schedule_reload_runs_once_for_a_burst() -> None:
    config = VariantConfig(entity_names=("rex",))
    fetcher = MemoryFetcher({"variant/entity/rex.json": REX_SOURCE_1})
    registry = VariantRegistry()
    reloader = VariantReloader(registry, fetcher, config)
    done = threading.Event()
    runs = []
    original = reloader.reload_all

    def tracking_reload_all():
        report = original()
        runs.append(report)
        done.set()
        return report

    reloader.reload_all = tracking_reload_all  # type: ignore[method-assign]
    first = reloader.schedule_reload(delay=10)
    reloader.schedule_reload(delay=0.01)
    assert done.wait(timeout=5)
    first.join(timeout=1)
    assert not first.is_alive()
    assert len(runs) == 1
    assert registry.variant_names("rex") == ["normal"]
    reloader.cancel_scheduled()


def test_reload_all_with_empty_names_loads_nothing() -> None:
    config = VariantConfig(entity_names=("rex",))
    mod, _ = config.entity_sources("rex")
    registry = VariantRegistry()
    reloader = VariantReloader(registry, MemoryFetcher({mod: REX_SOURCE_1}), config)

    report = reloader.reload_all([])

    assert dict(report.loaded) == {}
    assert report.ok
    assert registry.state("rex") is LoadState.EMPTY
