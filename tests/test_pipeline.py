import json
import random

import httpx
import pytest

from cli import locate
from libs.common.settings_store import MemorySettingsStore
from libs.integration.location_pipeline import Locator, build_chain, load_config


def test_load_config_missing_file(tmp_path):
    assert load_config(str(tmp_path / "nope.yml")) == {}
    assert load_config("") == {}


def test_load_config_yaml(tmp_path):
    path = tmp_path / "locator.yml"
    path.write_text("proxies:\n  order: [direct]\n  timeout_sec: 3\nsearch:\n  debounce_ms: 250\n")
    cfg = load_config(str(path))
    chain = build_chain(cfg)
    assert [p.name for p in chain.proxies] == ["direct"]
    assert chain.timeout == 3.0


def test_shipped_config_loads():
    cfg = load_config("config/locator.yml")
    assert cfg["proxies"]["order"] == ["allorigins", "corsproxy", "cors_anywhere"]


@pytest.mark.asyncio
async def test_locator_end_to_end():
    def handler(request):
        return httpx.Response(200, json=[{"display_name": "Model Town, Panipat", "lat": "29.39", "lon": "76.97"}])

    cfg = {"proxies": {"order": ["direct"]}, "search": {"debounce_ms": 20}, "map": {"default_city": "Karnal"}}
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    resolved = []
    async with Locator(cfg, client=client, settings=MemorySettingsStore(), rng=random.Random(4)) as loc:
        editor = loc.editor()
        ctrl = loc.controller(lambda r: resolved.append(editor.apply_resolution(r)), lambda: None)
        assert ctrl.quiet_period == pytest.approx(0.02)
        await ctrl.submit("Model Town")
        assert resolved[0].label == "Model Town, Panipat"
        assert resolved[0].landmark is not None
        saved = editor.save()
        assert saved["location"] == "29.390000,76.970000"
        assert 150 <= int(saved["landmark_distance"]) <= 350
    await client.aclose()


def test_cli_snap(capsys):
    assert locate.main(["snap", "730"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {"radius_m": 700, "step": 7, "label": "700 m"}


def test_cli_classify(capsys):
    assert locate.main(["--config", "", "classify", "https://maps.app.goo.gl/abc"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["kind"] == "url_needing_expansion"
    assert out["needs_network"] is True


def test_cli_landmark_preserves_offset(capsys):
    args = ["--config", "", "landmark", "--exact", "29.3909,76.9635", "--landmark", "29.392,76.965",
            "--move", "28.70406,77.102493", "--radius", "1250"]
    assert locate.main(args) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["location"] == "28.704060,77.102493"
    assert out["location_accuracy"] == "1300"
    assert out["radius_label"] == "1.3 km"


def test_cli_resolve_coordinates_offline(capsys):
    assert locate.main(["--config", "", "resolve", "28.704060,77.102493"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["coordinate"] == "28.704060,77.102493"
    assert out["source"] == "coordinates"
