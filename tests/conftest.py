import pytest


VOCAB = {
    "hello": "en",
    "cat": "en",
    "the": "en",
    "bonjour": "fr",
    "chat": "fr",
    "le": "fr",
    "hallo": "de",
}


class FakeIdentifier:
    """Labels text by the language of its first known word, "un" if none."""

    def __init__(self, model_path=None, langs=None):
        self.calls = []

    def classify(self, data):
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8")
        self.calls.append(data)
        for word in data.split():
            if word.lower() in VOCAB:
                return VOCAB[word.lower()]
        return "un"

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FailingIdentifier(FakeIdentifier):

    def classify(self, data):
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        if "boom" in data:
            raise OSError("cannot classify {!r}".format(data))
        return super().classify(data)


@pytest.fixture
def identifier():
    return FakeIdentifier()


def write_lines(path, lines):
    with open(path, "wb") as f:
        for line in lines:
            f.write(line.encode("utf-8"))


def read_lines(path):
    with open(path, "rb") as f:
        return [line.decode("utf-8") for line in f]


@pytest.fixture
def make_bitext(tmp_path):
    def _make(src_lines, tgt_lines, src="en", tgt="fr"):
        prefix = str(tmp_path / "corpus")
        write_lines("{}.{}".format(prefix, src), src_lines)
        write_lines("{}.{}".format(prefix, tgt), tgt_lines)
        return prefix
    return _make
