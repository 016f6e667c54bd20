from datetime import timezone

from shared.config import ServiceConfig
from shared.utils import config, generate_slug, sanitize_filename, utc_now


def test_config_env_loading() -> None:
    # Keys should resolve even when not explicitly configured
    assert config.get("anthropic_api_key") in (None, "") or isinstance(config.get("anthropic_api_key"), str)
    assert config.get("elevenlabs_api_key") in (None, "") or isinstance(config.get("elevenlabs_api_key"), str)
    assert isinstance(config.get("allowed_origins"), list)
    assert isinstance(config.get("subtitle_batch_size"), int)


def test_config_default_for_missing_key() -> None:
    assert config.get("no_such_key", "fallback") == "fallback"


def test_settings_file_values_and_env_override(monkeypatch) -> None:
    service_config = ServiceConfig()
    service_config.set_settings_config({"subtitles": {"batch_size": 12}})

    assert service_config.get_setting("subtitles.batch_size", 30) == 12
    assert service_config.get_setting("subtitles.missing", 30) == 30

    monkeypatch.setenv("SUBTITLE_FLAG_SUBTITLES_BATCH_SIZE", "45")
    assert service_config.get_setting("subtitles.batch_size", 30) == 45


def test_settings_file_loaded_from_path(tmp_path, monkeypatch) -> None:
    settings = tmp_path / "subtitles.yaml"
    settings.write_text("subtitles:\n  translation_concurrency: 3\n", encoding="utf-8")
    monkeypatch.setenv("SUBTITLE_CONFIG_PATH", str(settings))

    assert ServiceConfig().get_setting("subtitles.translation_concurrency") == 3


def test_sanitize_filename() -> None:
    fname = 'bad:file?name*.srt'
    safe = sanitize_filename(fname)
    assert ":" not in safe and "?" not in safe and "*" not in safe
    assert sanitize_filename("../../etc/passwd") == "etc/passwd"
    assert sanitize_filename("tenant-1/intro_es.srt") == "tenant-1/intro_es.srt"


def test_generate_slug() -> None:
    assert generate_slug("Working at Height: Ladder Safety!") == "working_at_height_ladder_safety"
    assert generate_slug("  Fire   Safety 101 ") == "fire_safety_101"
    assert generate_slug("???") == ""


def test_utc_now_is_timezone_aware() -> None:
    assert utc_now().tzinfo == timezone.utc
