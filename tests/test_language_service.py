import pytest

from app.services.errors import ConflictError, NotFoundError
from app.services.language_service import LanguageService
from app.utils.database import init_default_languages, DEFAULT_LANGUAGES

def test_parse_single_format():
    text = "First line\n  Second line  \r\n\n\nThird"
    assert LanguageService.parse_sentences(text, "single") == ["First line", "Second line", "Third"]

def test_parse_paragraph_format():
    text = "It rained. We stayed in.\nThen the sun came out"
    assert LanguageService.parse_sentences(text, "paragraph") == [
        "It rained.", "We stayed in.", "Then the sun came out."
    ]

def test_parse_unknown_format():
    with pytest.raises(ValueError):
        LanguageService.parse_sentences("a", "csv")

def test_create_and_delete_language(db_session):
    service = LanguageService(db_session)
    language = service.create_language_from_text(" Odia ", "ଗୋଟିଏ\nଦୁଇ", "single")
    assert language.name == "Odia"
    assert service.get_sentences("Odia") == ["ଗୋଟିଏ", "ଦୁଇ"]

    with pytest.raises(ConflictError):
        service.create_language("Odia", ["again"])
    with pytest.raises(ValueError):
        service.create_language("Blank", ["   "])

    assert service.delete_language(language.id) == "Odia"
    with pytest.raises(NotFoundError):
        service.get_language("Odia")

def test_default_languages_seeded_once(db_session):
    assert init_default_languages(db_session) == len(DEFAULT_LANGUAGES)
    assert init_default_languages(db_session) == 0
    names = [language.name for language in LanguageService(db_session).get_all_languages()]
    assert "English" in names and "Hindi" in names
