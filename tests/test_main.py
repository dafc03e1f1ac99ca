import json

from main import run_main


def write_config(tmp_path, data):
    path = tmp_path / "configuration.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_bad_custom_hre_mapping_returns_error(tmp_path, small_save):
    save = tmp_path / "save.json"
    save.write_text(json.dumps(small_save), encoding="utf-8")
    config = write_config(tmp_path, {"hre": "custom", "save_path": str(save), "output_dir": str(tmp_path / "out")})
    (tmp_path / "i_am_hre.json").write_text('{"hre": "k_france"}', encoding="utf-8")

    assert run_main(["--config", str(config)]) == 1
    assert not (tmp_path / "out").exists()


def test_missing_save_returns_error(tmp_path):
    config = write_config(tmp_path, {"output_dir": str(tmp_path / "out")})
    assert run_main(["--config", str(config)]) == 1


def test_full_run_writes_summary(tmp_path, small_save):
    save = tmp_path / "save.json"
    save.write_text(json.dumps(small_save), encoding="utf-8")
    config = write_config(tmp_path, {"save_path": str(save), "mod_path": str(tmp_path / "mods"), "output_dir": str(tmp_path / "out")})

    assert run_main(["--config", str(config)]) == 0
    summary = json.loads((tmp_path / "out" / "world.json").read_text(encoding="utf-8"))
    assert "k_france" in summary["independent_titles"]
