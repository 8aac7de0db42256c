# fogsim/__init__.py
from . import config
from . import topology
from . import workload
from . import application
from . import placement
from . import engine
from . import metrics
from . import report
from . import scenario

__all__ = ["config", "topology", "workload", "application", "placement",
           "engine", "metrics", "report", "scenario"]
