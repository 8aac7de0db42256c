# fogsim/plots.py
import os
from typing import List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from fogsim.metrics import Report
from fogsim.utils import ensure_dir

METRICS = [
    ("Latency_ms", "plot_latency.png", "avg loop latency (ms)"),
    ("Throughput_tuples_per_sec", "plot_throughput.png", "throughput (tuples/s)"),
    ("Bandwidth_Kbps", "plot_bandwidth.png", "bandwidth (Kbps)"),
    ("Energy_J", "plot_energy.png", "energy (J)"),
]


def reports_frame(reports: List[Report]) -> pd.DataFrame:
    df = pd.DataFrame([r.row() for r in reports])
    df["Offloaded"] = [r.offloaded for r in reports]
    return df


def plot_batch(reports: List[Report], outdir: str) -> List[str]:
    """One PNG per metric, workload on x, one line per placement mode."""
    if not reports:
        return []
    ensure_dir(outdir)
    df = reports_frame(reports)

    def save_plot(fn, ylabel, column):
        plt.figure(figsize=(9, 4.5))
        for mode, grp in df.groupby("Mode", sort=False):
            grp = grp.sort_values("Workload")
            plt.plot(grp["Workload"], grp[column], marker="o", label=mode)
        plt.xlabel("workload (%)")
        plt.ylabel(ylabel)
        plt.grid(True, alpha=0.3)
        plt.legend()
        plt.tight_layout()
        path = os.path.join(outdir, fn)
        plt.savefig(path, dpi=150)
        plt.close()
        return path

    return [save_plot(fn, ylabel, col) for col, fn, ylabel in METRICS]
