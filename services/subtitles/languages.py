"""Language name to ISO 639-1 code resolution."""

from shared.enums import SOURCE_LANGUAGE, SOURCE_LANGUAGE_CODE

SUPPORTED_LANGUAGES: dict[str, str] = {
    "English": "en",
    "Albanian": "sq",
    "Arabic": "ar",
    "Bulgarian": "bg",
    "Chinese": "zh",
    "Croatian": "hr",
    "Czech": "cs",
    "Danish": "da",
    "Dutch": "nl",
    "Estonian": "et",
    "Finnish": "fi",
    "French": "fr",
    "German": "de",
    "Greek": "el",
    "Hindi": "hi",
    "Hungarian": "hu",
    "Irish": "ga",
    "Italian": "it",
    "Latvian": "lv",
    "Lithuanian": "lt",
    "Polish": "pl",
    "Portuguese": "pt",
    "Punjabi": "pa",
    "Romanian": "ro",
    "Russian": "ru",
    "Serbian": "sr",
    "Slovak": "sk",
    "Slovenian": "sl",
    "Spanish": "es",
    "Swedish": "sv",
    "Turkish": "tr",
    "Ukrainian": "uk",
    "Urdu": "ur",
}


class LanguageCodeResolver:
    """Map human-readable language names to ISO codes and back."""

    def __init__(self, languages: dict[str, str] | None = None) -> None:
        self._languages = dict(languages or SUPPORTED_LANGUAGES)
        self._languages.setdefault(SOURCE_LANGUAGE, SOURCE_LANGUAGE_CODE)
        self._by_name = {name.lower(): code for name, code in self._languages.items()}
        self._by_code = {code: name for name, code in self._languages.items()}

    def resolve(self, language_name: str) -> str:
        """Return the ISO code for a language name (case-insensitive).

        Raises:
            KeyError: the language is not supported
        """
        key = language_name.strip().lower()
        if key in self._by_name:
            return self._by_name[key]
        # Accept a code passed where a name was expected
        if key in self._by_code:
            return key
        raise KeyError(language_name)

    def is_valid_language(self, language_name: str) -> bool:
        try:
            self.resolve(language_name)
        except KeyError:
            return False
        return True

    def get_language_name(self, language_code: str) -> str:
        """Display name for a code; unknown codes come back unchanged."""
        return self._by_code.get(language_code.strip().lower(), language_code)

    def get_display_name(self, language_name: str) -> str:
        """Canonical display name for a supported name, e.g. 'spanish' -> 'Spanish'."""
        return self.get_language_name(self.resolve(language_name))

    def get_all_languages(self) -> dict[str, str]:
        return dict(sorted(self._languages.items()))
