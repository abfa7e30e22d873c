import json

from treasury.config import DEFAULT_CONFIG, get_config_path, get_user_config


def test_defaults_without_file():
    config = get_user_config()

    assert config == DEFAULT_CONFIG
    assert config["currencies"] == ["ARS", "USD"]
    assert config["default_currency"] == "ARS"


def test_config_path_override(tmp_path, monkeypatch):
    monkeypatch.setenv("TREASURY_CONFIG", str(tmp_path / "custom.json"))

    assert get_config_path() == tmp_path / "custom.json"


def test_user_values_merged(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "currencies": ["ars", "eur"],
        "default_currency": "eur",
        "organization": "Anexo Sur",
        "unrelated": 1,
    }), encoding="utf-8")
    monkeypatch.setenv("TREASURY_CONFIG", str(path))

    config = get_user_config()

    assert config["currencies"] == ["ARS", "EUR"]
    assert config["default_currency"] == "EUR"
    assert config["organization"] == "Anexo Sur"
    assert "unrelated" not in config
    assert config["expense_groups"] == DEFAULT_CONFIG["expense_groups"]


def test_invalid_json_falls_back(tmp_path, monkeypatch, caplog):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("TREASURY_CONFIG", str(path))

    assert get_user_config() == DEFAULT_CONFIG
    assert "Could not read config" in caplog.text


def test_non_object_falls_back(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    monkeypatch.setenv("TREASURY_CONFIG", str(path))

    assert get_user_config() == DEFAULT_CONFIG
