import importlib.util
import warnings
from pathlib import Path

from util.enums import ErrorMessage

ENUMS_PATH = Path(__file__).resolve().parent.parent / "util" / "enums.py"


def test_error_statuses():
    assert ErrorMessage.DOCUMENT_NOT_FOUND.value.http_status == 404
    assert ErrorMessage.DOCUMENT_UNREADABLE.value.http_status == 503
    assert ErrorMessage.NOT_A_PDF.value.http_status == 422
    assert ErrorMessage.UPSTREAM_MODEL_ERROR.value.http_status == 502


def test_enums_module_imports_without_deprecation_warnings():
    # Load a private copy so the shared util.enums classes stay untouched.
    spec = importlib.util.spec_from_file_location("_enums_copy", ENUMS_PATH)
    module = importlib.util.module_from_spec(spec)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        spec.loader.exec_module(module)

    assert [w for w in caught if issubclass(w.category, DeprecationWarning)] == []
