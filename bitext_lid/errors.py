class LangidError(Exception):
    """Base class for errors that abort a run."""
