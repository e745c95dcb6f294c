from concurrent.futures import ThreadPoolExecutor

import pytest

from bitext_lid.identifier import Identifier, load_identifier


@pytest.fixture(scope="module")
def default_identifier():
    return Identifier.default()


ENGLISH = "This is a simple sentence written in plain English for testing."
FRENCH = "Ceci est une phrase simple écrite en français pour les tests."


class TestDefaultModel:
    def test_classifies_str(self, default_identifier):
        assert default_identifier.classify(ENGLISH) == "en"
        assert default_identifier.classify(FRENCH) == "fr"

    def test_classifies_bytes(self, default_identifier):
        assert default_identifier.classify(FRENCH.encode("utf-8")) == "fr"

    def test_invalid_utf8_is_tolerated(self, default_identifier):
        lang = default_identifier.classify(ENGLISH.encode("utf-8") + b"\xff\xfe")
        assert lang == "en"

    def test_empty_input_returns_a_code(self, default_identifier):
        assert isinstance(default_identifier.classify(b""), str)

    def test_concurrent_calls_agree(self, default_identifier):
        texts = [ENGLISH, FRENCH] * 20
        with ThreadPoolExecutor(max_workers=2) as executor:
            labels = list(executor.map(default_identifier.classify, texts))
        assert labels == ["en", "fr"] * 20


class TestLifecycle:
    def test_restricted_languages(self):
        identifier = load_identifier(langs=["de", "fr"])
        assert identifier.langs == ["de", "fr"]
        assert identifier.classify(ENGLISH) in {"de", "fr"}

    def test_close(self):
        with load_identifier() as identifier:
            assert not identifier.closed
        assert identifier.closed
        identifier.close()
        with pytest.raises(RuntimeError):
            identifier.classify(ENGLISH)

    def test_missing_model_path(self, tmp_path):
        with pytest.raises(OSError):
            load_identifier(str(tmp_path / "missing.model"))
