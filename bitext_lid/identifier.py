"""
Thin wrapper around langid.py's LanguageIdentifier. A handle is built once
per run and can be shared by several classification tasks: classify() only
reads the model.
"""

import logging

from langid.langid import LanguageIdentifier, model


logger = logging.getLogger(__name__)


class Identifier:

    def __init__(self, lid, langs=None):
        self._lid = lid
        if langs:
            # restricts the output label set; empty or None means all langs
            self._lid.set_languages(list(langs))
        self.langs = list(langs) if langs else None

    @classmethod
    def default(cls, langs=None):
        logger.info("loading default langid model")
        return cls(LanguageIdentifier.from_modelstring(model), langs=langs)

    @classmethod
    def from_model(cls, path, langs=None):
        logger.info("loading langid model from {}".format(path))
        return cls(LanguageIdentifier.from_modelpath(path), langs=langs)

    @property
    def closed(self):
        return self._lid is None

    def classify(self, data) -> str:
        """
        Return the language code of data, which may be bytes or str. Bytes
        are decoded as utf-8; undecodable sequences are replaced rather than
        rejected.
        """
        if self._lid is None:
            raise RuntimeError("classify() called on a closed identifier")
        if isinstance(data, (bytes, bytearray, memoryview)):
            data = bytes(data).decode("utf-8", errors="replace")
        lang, _ = self._lid.classify(data)
        return lang

    def close(self):
        self._lid = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def load_identifier(model_path=None, langs=None) -> Identifier:
    if model_path is not None:
        return Identifier.from_model(model_path, langs=langs)
    return Identifier.default(langs=langs)
