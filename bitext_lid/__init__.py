from bitext_lid.identifier import Identifier, load_identifier  # noqa
from bitext_lid.bitext import (  # noqa
    BitextError,
    BitextJob,
    ClassificationError,
    FilterStats,
    classify_bitext,
    classify_lines,
    filter_aligned,
    run_filter,
)
from bitext_lid.batch import (  # noqa
    NO_SUCH_FILE,
    NOT_A_FILE,
    BatchResult,
    MappingReleaseError,
    classify_file,
    classify_paths,
)

__version__ = "0.1.0"
