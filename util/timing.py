# util/timing.py
import time
from contextlib import contextmanager
from typing import Iterator, Any
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Any) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "locate", pages=10):
          ...
    Emits one INFO on exit: "<name>.done ms=<int> key=val ..."
    or "<name>.failed ms=<int> ..." when the block raised.
    """
    t0 = time.perf_counter()
    ok = False
    try:
        yield
        ok = True
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.info("%s.%s ms=%d%s", name, "done" if ok else "failed", dt_ms, suffix)
