from .inputs import validate_input
from .runner import RunOutcome, ToolRunner, select_result

__all__ = ["RunOutcome", "ToolRunner", "select_result", "validate_input"]
