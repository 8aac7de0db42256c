# fogsim/report.py
import logging
import os
import threading

import pandas as pd

from fogsim.errors import ReportError
from fogsim.metrics import Report
from fogsim.utils import ensure_dir

logger = logging.getLogger(__name__)


class ReportSink:
    """
    Append-only flat CSV, one row per scenario.
    The header (fixed prefix + that row's sensor columns) is written only when
    the file does not exist yet. Later rows are never widened or padded, so a
    row whose sensor set differs from the first one is ragged.
    """
    def __init__(self, path="simulation_results.csv"):
        self.path = path
        self.rows_written = 0
        self._lock = threading.Lock()

    def append(self, report: Report):
        with self._lock:
            write_header = not os.path.exists(self.path)
            df = pd.DataFrame([report.row()])
            try:
                parent = os.path.dirname(self.path)
                if parent:
                    ensure_dir(parent)
                with open(self.path, "a", newline="") as fh:
                    df.to_csv(fh, header=write_header, index=False, float_format="%.2f")
            except OSError as exc:
                raise ReportError(f"failed to write {self.path}: {exc}") from exc
            self.rows_written += 1
            logger.debug("appended %s/%s row to %s", report.workload, report.mode, self.path)
