"""
Domain Errors

Whole-run aborts (resource / configuration) are separated from per-prompt
faults (routing miss, model load, generation), which the orchestrator
catches at the prompt boundary.
"""


class BenchmarkError(Exception):
    """Base class for benchmark harness errors"""
    pass


class ResourceLoadError(BenchmarkError):
    """A bundled resource is missing or malformed"""

    def __init__(self, resource: str, kind: str, detail: str = ""):
        self.resource = resource
        self.kind = kind  # "missing" / "decode"
        message = f"Resource {resource} could not be loaded ({kind})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConfigurationMismatchError(BenchmarkError):
    """Router model or routing targets are not installed"""
    pass


class RoutingMissError(BenchmarkError):
    """A category has no installed routing target"""
    pass


class EngineError(BenchmarkError):
    """Error raised by an inference engine"""
    pass


class ModelLoadError(EngineError):
    """The engine could not load the requested model"""
    pass


class GenerationError(EngineError):
    """The engine failed while streaming a completion"""
    pass


class ProbeError(BenchmarkError):
    """An OS-level resource reading was unavailable"""
    pass


class RunInProgressError(BenchmarkError):
    """A run was started while another run holds the engine"""
    pass
