# fogsim/utils.py
import os


def clamp(x, lo, hi): return max(lo, min(hi, x))
def ensure_dir(p): os.makedirs(p, exist_ok=True)


def check_workload(workload_percent):
    if not 1 <= workload_percent <= 100:
        raise ValueError(f"workload must be within 1..100 %, got {workload_percent}")
    return workload_percent
