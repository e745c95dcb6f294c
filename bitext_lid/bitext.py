"""
Language-id filtering of a bitext: two files whose lines are aligned
translations of each other. Both sides are classified concurrently, the
labels are written to transient files next to the corpus, and then the
corpus and its labels are read back together to keep only the pairs whose
labels match the expected languages.

For a job with prefix "corpus", languages "en" and "fr" and destination
prefix "clean", the files involved are:

    corpus.en, corpus.fr            inputs
    corpus.lid.en, corpus.lid.fr    labels (removed when the job ends)
    clean.en, clean.fr              outputs
"""

import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor, wait
from contextlib import ExitStack, contextmanager
from typing import NamedTuple

from bitext_lid.errors import LangidError
from bitext_lid.identifier import load_identifier


logger = logging.getLogger(__name__)


class BitextError(LangidError):
    pass


class ClassificationError(LangidError):
    pass


class FilterStats(NamedTuple):
    seen: int
    kept: int


class BitextJob(NamedTuple):
    prefix: str
    src_lang: str
    tgt_lang: str
    dest_prefix: str

    @property
    def src_path(self):
        return "{}.{}".format(self.prefix, self.src_lang)

    @property
    def tgt_path(self):
        return "{}.{}".format(self.prefix, self.tgt_lang)

    @property
    def src_labels_path(self):
        return "{}.lid.{}".format(self.prefix, self.src_lang)

    @property
    def tgt_labels_path(self):
        return "{}.lid.{}".format(self.prefix, self.tgt_lang)

    @property
    def src_dest_path(self):
        return "{}.{}".format(self.dest_prefix, self.src_lang)

    @property
    def tgt_dest_path(self):
        return "{}.{}".format(self.dest_prefix, self.tgt_lang)

    def validate(self):
        """Raise BitextError if two of the job's files would be the same."""
        if self.src_lang == self.tgt_lang:
            raise BitextError(
                "source and target language are both {}".format(self.src_lang)
            )
        labels = {os.path.abspath(self.src_labels_path),
                  os.path.abspath(self.tgt_labels_path)}
        for path in (self.src_path, self.tgt_path,
                     self.src_dest_path, self.tgt_dest_path):
            if os.path.abspath(path) in labels:
                raise BitextError("{} is also a label file".format(path))


def strip_terminator(line):
    """Remove one trailing "\\n" or "\\r\\n" from a str or bytes line."""
    if isinstance(line, bytes):
        newline, carriage = b"\n", b"\r"
    else:
        newline, carriage = "\n", "\r"
    if line.endswith(newline):
        line = line[:-1]
        if line.endswith(carriage):
            line = line[:-1]
    return line


def classify_lines(identifier, text_path, labels_path) -> int:
    """
    Write one label per line of text_path to labels_path, in input order.
    Returns the number of lines classified.
    """
    n_lines = 0
    with open(text_path, "rb") as fin, \
            open(labels_path, "w", encoding="utf-8") as fout:
        for line in fin:
            fout.write(identifier.classify(strip_terminator(line)) + "\n")
            n_lines += 1
    return n_lines


# set in each worker process by init_worker
_worker_identifier = None


def init_worker(model_path=None, langs=None, factory=load_identifier):
    """
    Initializer for process workers. langid models cannot be pickled, so
    every worker builds its own identifier from the model path instead of
    receiving the parent's.
    """
    global _worker_identifier
    _worker_identifier = factory(model_path, langs=langs)


def classify_lines_in_worker(text_path, labels_path) -> int:
    return classify_lines(_worker_identifier, text_path, labels_path)


def classify_bitext(identifier, job, executor=None):
    """
    Classify both sides of the bitext at the same time, one task per side,
    and return the line counts of each side. Both tasks have finished by the
    time this returns or raises.

    With identifier=None each task uses the identifier of the worker it runs
    in, which requires an executor initialized with init_worker.
    """
    if identifier is None:
        task, task_args = classify_lines_in_worker, ()
    else:
        task, task_args = classify_lines, (identifier,)
    own_executor = executor is None
    if own_executor:
        executor = ThreadPoolExecutor(max_workers=2)
    try:
        futures = [
            executor.submit(task, *task_args, job.src_path, job.src_labels_path),
            executor.submit(task, *task_args, job.tgt_path, job.tgt_labels_path),
        ]
        wait(futures)
    finally:
        if own_executor:
            executor.shutdown(wait=True)

    for side, future in zip((job.src_lang, job.tgt_lang), futures):
        error = future.exception()
        if error is not None:
            raise ClassificationError(
                "classifying the {} side failed: {}".format(side, error)
            ) from error

    n_src, n_tgt = (future.result() for future in futures)
    if n_src != n_tgt:
        # the filter pass stops at the shorter side
        logger.warning(
            "line counts differ: {} has {}, {} has {}".format(
                job.src_path, n_src, job.tgt_path, n_tgt
            )
        )
    return n_src, n_tgt


def filter_aligned(src_lines, tgt_lines, src_labels, tgt_labels,
                   src_lang, tgt_lang, src_out, tgt_out) -> FilterStats:
    """
    Walk the four sequences in lock-step and write the line pairs whose
    labels are (src_lang, tgt_lang). Lines are written exactly as read.
    Stops as soon as any of the sequences runs out.
    """
    seen, kept = 0, 0
    for src_line, tgt_line, src_label, tgt_label in zip(
        src_lines, tgt_lines, src_labels, tgt_labels
    ):
        seen += 1
        if strip_terminator(src_label) == src_lang and \
                strip_terminator(tgt_label) == tgt_lang:
            src_out.write(src_line)
            tgt_out.write(tgt_line)
            kept += 1
    return FilterStats(seen, kept)


@contextmanager
def label_files(job):
    """Create both label files; they are removed however the block exits."""
    paths = (job.src_labels_path, job.tgt_labels_path)
    try:
        for path in paths:
            open(path, "w").close()
        yield paths
    finally:
        for path in paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass


def _current_umask():
    umask = os.umask(0)
    os.umask(umask)
    return umask


@contextmanager
def staged_output(path):
    """
    Yield a binary file that replaces path only if the block succeeds. On
    failure the temporary file is removed and path is left untouched.
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(
        prefix=".{}.".format(os.path.basename(path)), suffix=".tmp", dir=directory
    )
    try:
        with os.fdopen(fd, "wb") as f:
            yield f
        os.chmod(tmp_path, 0o666 & ~_current_umask())
        os.replace(tmp_path, path)
    except BaseException:
        os.remove(tmp_path)
        raise


def run_filter(identifier, job, executor=None) -> FilterStats:
    """
    Classify and filter the bitext described by job. If either input cannot
    be opened, or an output cannot be staged, nothing is classified and no
    output file is created or truncated. The outputs replace their
    destinations only once the whole pass has succeeded.
    """
    job.validate()

    with ExitStack() as stack:
        try:
            src_in = stack.enter_context(open(job.src_path, "rb"))
            tgt_in = stack.enter_context(open(job.tgt_path, "rb"))
        except OSError as e:
            raise BitextError("cannot open bitext input: {}".format(e)) from e

        try:
            src_out = stack.enter_context(staged_output(job.src_dest_path))
            tgt_out = stack.enter_context(staged_output(job.tgt_dest_path))
        except OSError as e:
            raise BitextError("cannot create output: {}".format(e)) from e

        try:
            stack.enter_context(label_files(job))
        except OSError as e:
            raise BitextError("cannot create label files: {}".format(e)) from e

        n_src, n_tgt = classify_bitext(identifier, job, executor=executor)
        logger.info(
            "classified {} {} lines and {} {} lines".format(
                n_src, job.src_lang, n_tgt, job.tgt_lang
            )
        )

        src_labels = stack.enter_context(open(job.src_labels_path, encoding="utf-8"))
        tgt_labels = stack.enter_context(open(job.tgt_labels_path, encoding="utf-8"))
        stats = filter_aligned(
            src_in, tgt_in, src_labels, tgt_labels,
            job.src_lang, job.tgt_lang, src_out, tgt_out
        )

    logger.info("Seen {}, kept {}".format(stats.seen, stats.kept))
    return stats
