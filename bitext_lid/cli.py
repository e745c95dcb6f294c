#!/usr/bin/env python

"""
Command-line language identification.

    bitext-lid < doc.txt                    language of the whole document
    bitext-lid -l < lines.txt               language of each line
    bitext-lid -b < paths.txt               language of each listed file
    bitext-lid -f corpus en fr clean        keep the en-fr pairs of corpus.{en,fr}

With no flags and a terminal on stdin, lines are read interactively.
"""

import argparse
import logging
import sys
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor

from bitext_lid.batch import classify_paths
from bitext_lid.bitext import (
    BitextError,
    BitextJob,
    init_worker,
    run_filter,
    strip_terminator,
)
from bitext_lid.errors import LangidError
from bitext_lid.identifier import load_identifier


logger = logging.getLogger(__name__)


def get_parser():
    parser = argparse.ArgumentParser(prog="bitext-lid", description=__doc__,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    modes = parser.add_mutually_exclusive_group()
    modes.add_argument("-l", dest="line_mode", action="store_true",
                       help="classify each line of stdin")
    modes.add_argument("-b", dest="batch_mode", action="store_true",
                       help="classify each file whose path is a line of stdin")
    modes.add_argument("-f", dest="filter_mode", action="store_true",
                       help="filter a bitext, see positional arguments")
    parser.add_argument("args", nargs="*", metavar="ARG",
                        help="with -f: prefix src_lang tgt_lang dest_prefix")
    parser.add_argument("-m", "--model", default=None,
                        help="langid model file (default: the built-in model)")
    parser.add_argument("--langs", default=None,
                        help="comma-separated language codes to choose from")
    parser.add_argument("--processes", action="store_true",
                        help="with -f, classify the two sides in separate processes")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def document_mode(identifier, fin, out):
    text = fin.read()
    out.write("{},{}\n".format(identifier.classify(text), len(text)))


def line_mode(identifier, fin, out):
    for line in fin:
        lang = identifier.classify(strip_terminator(line))
        out.write("{},{}\n".format(lang, len(line)))


def interactive_mode(identifier, fin, out):
    out.write("langid interactive mode.\n")
    while True:
        out.write(">>> ")
        out.flush()
        line = fin.readline()
        # EOF or an empty line ends the session
        if line in (b"", b"\n"):
            break
        lang = identifier.classify(strip_terminator(line))
        out.write("{},{}\n".format(lang, len(line)))
    out.write("Bye!\n")


def filter_mode(identifier, job, model_path=None, langs=None, use_processes=False):
    sys.stdout.write("langid filtering mode.\n")
    sys.stdout.flush()
    if use_processes:
        # each worker loads its own model
        executor = ProcessPoolExecutor(max_workers=2, initializer=init_worker,
                                       initargs=(model_path, langs))
        identifier = None
    else:
        executor = ThreadPoolExecutor(max_workers=2)
    with executor:
        return run_filter(identifier, job, executor=executor)


def main(argv=None):
    parser = get_parser()
    args = parser.parse_args(argv)

    job = None
    if args.filter_mode:
        if len(args.args) != 4:
            parser.error("-f takes exactly four arguments: "
                         "prefix src_lang tgt_lang dest_prefix")
        job = BitextJob(*args.args)
        try:
            job.validate()
        except BitextError as e:
            parser.error(str(e))
    elif args.args:
        parser.error("positional arguments are only accepted with -f")
    if args.processes and not args.filter_mode:
        parser.error("--processes only applies to -f")

    logging.basicConfig(
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=args.log_level,
        stream=sys.stderr,
    )
    langs = [lang for lang in args.langs.split(",") if lang] if args.langs else None

    try:
        identifier = load_identifier(args.model, langs=langs)
    except (OSError, ValueError) as e:
        logger.error("cannot load identifier: {}".format(e))
        return 1

    with identifier:
        try:
            if job is not None:
                filter_mode(identifier, job, model_path=args.model, langs=langs,
                            use_processes=args.processes)
            elif args.line_mode:
                line_mode(identifier, sys.stdin.buffer, sys.stdout)
            elif args.batch_mode:
                classify_paths(identifier, sys.stdin.buffer, sys.stdout.buffer)
            elif sys.stdin.isatty():
                interactive_mode(identifier, sys.stdin.buffer, sys.stdout)
            else:
                document_mode(identifier, sys.stdin.buffer, sys.stdout)
        except LangidError as e:
            logger.error(str(e))
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
