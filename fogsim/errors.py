# fogsim/errors.py


class FogSimError(Exception):
    """Base class for simulator errors."""


class ConstructionError(FogSimError):
    """A device, sensor or application graph is malformed; the scenario cannot run."""


class EngineError(FogSimError):
    """The simulation engine failed while running a scenario."""


class ReportError(FogSimError):
    """A report row could not be persisted."""
