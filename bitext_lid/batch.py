"""
Batch mode: classify whole files whose paths are read one per line. Each
file is memory-mapped and classified in one call.
"""

import logging
import mmap
import os
from typing import NamedTuple

from bitext_lid.errors import LangidError


logger = logging.getLogger(__name__)

NO_SUCH_FILE = "NOSUCHFILE"
NOT_A_FILE = "NOTAFILE"


class MappingReleaseError(LangidError):
    pass


class BatchResult(NamedTuple):
    path: str
    length: int
    lang: str

    def __str__(self):
        return "{},{},{}".format(self.path, self.length, self.lang)


def _release(mapped, path, length):
    try:
        mapped.close()
    except (BufferError, OSError) as e:
        raise MappingReleaseError(
            "failed to munmap {} of length {}".format(path, length)
        ) from e


def classify_file(identifier, path) -> BatchResult:
    try:
        f = open(path, "rb")
    except IsADirectoryError:
        return BatchResult(path, 0, NOT_A_FILE)
    except OSError:
        return BatchResult(path, 0, NO_SUCH_FILE)

    with f:
        length = os.fstat(f.fileno()).st_size
        if length == 0:
            # mmap refuses empty mappings
            return BatchResult(path, 0, identifier.classify(b""))
        mapped = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
        try:
            # decoded straight from the mapping, without a bytes copy
            lang = identifier.classify(str(mapped, "utf-8", "replace"))
        finally:
            _release(mapped, path, length)
    return BatchResult(path, length, lang)


def classify_paths(identifier, lines, out) -> int:
    """
    Classify the file named by each line of the binary stream lines
    (trailing newline removed) and write one result per line to the binary
    stream out. Paths are decoded with the filesystem encoding, so names that
    are not valid utf-8 are opened and echoed unchanged. Returns the number
    of paths seen.
    """
    n_paths = 0
    for line in lines:
        path = os.fsdecode(line[:-1] if line.endswith(b"\n") else line)
        result = classify_file(identifier, path)
        if result.lang in (NO_SUCH_FILE, NOT_A_FILE):
            logger.debug("skipping {}: {}".format(path, result.lang))
        out.write(os.fsencode("{}\n".format(result)))
        n_paths += 1
    return n_paths
