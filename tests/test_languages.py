import pytest

from services.subtitles.languages import SUPPORTED_LANGUAGES, LanguageCodeResolver


@pytest.fixture
def resolver():
    return LanguageCodeResolver()


def test_resolve_is_case_insensitive(resolver) -> None:
    assert resolver.resolve("Spanish") == "es"
    assert resolver.resolve("spanish") == "es"
    assert resolver.resolve("  FRENCH ") == "fr"


def test_resolve_accepts_iso_code(resolver) -> None:
    assert resolver.resolve("de") == "de"


def test_resolve_unknown_language_raises(resolver) -> None:
    with pytest.raises(KeyError):
        resolver.resolve("Klingon")
    assert resolver.is_valid_language("Klingon") is False
    assert resolver.is_valid_language("Polish") is True


def test_names_round_trip(resolver) -> None:
    assert resolver.get_language_name("de") == "German"
    assert resolver.get_language_name("xx") == "xx"
    assert resolver.get_display_name("portuguese") == "Portuguese"


def test_all_languages_include_english(resolver) -> None:
    languages = resolver.get_all_languages()
    assert languages["English"] == "en"
    assert list(languages) == sorted(languages)
    assert len(languages) == len(SUPPORTED_LANGUAGES)


def test_custom_language_table_always_knows_english() -> None:
    resolver = LanguageCodeResolver({"Welsh": "cy"})
    assert resolver.resolve("welsh") == "cy"
    assert resolver.resolve("english") == "en"
