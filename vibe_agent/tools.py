import logging
import math
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from vibe_agent.exceptions import ToolExecutionError
from vibe_agent.execution import ToolExecutionResult

logger = logging.getLogger(__name__)


class ToolInput(BaseModel):
    """Subclass this for tool-specific input validation."""


def _matches_type(value: Any, expected: Optional[str]) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return not (isinstance(value, float) and math.isnan(value))
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "object":
        return isinstance(value, dict)
    if expected == "array":
        return isinstance(value, list)
    # Unknown or missing type: accept
    return True


class Tool:
    """Base class for every capability exposed to the model.

    Subclasses set ``name``, ``description`` and either ``parameter_schema``
    (a JSON schema dict) or ``input_model`` (a pydantic model the schema is
    derived from), mark mutating tools with ``is_write = True`` and implement
    ``run``.
    """

    name: str
    description: str
    parameter_schema: Optional[dict] = None
    input_model: Optional[type[BaseModel]] = None
    is_write: bool = False

    def schema(self) -> dict:
        """Return the JSON schema describing this tool's parameters."""
        if self.parameter_schema is not None:
            return self.parameter_schema
        if self.input_model is not None:
            return self.input_model.model_json_schema()
        return {}

    def describe(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "schema": self.schema(),
            "is_write": self.is_write,
        }

    def validate(self, parameters: Any) -> bool:
        """Check required parameters are present and declared types match.

        Parameters missing from the schema are allowed; an empty schema
        accepts anything.
        """
        if not isinstance(parameters, dict):
            return False

        schema = self.schema()
        properties = schema.get("properties") or {}
        if not properties:
            return True

        for required in schema.get("required") or []:
            if required not in parameters:
                return False

        for param_name, value in parameters.items():
            param_schema = properties.get(param_name)
            if param_schema and not _matches_type(value, param_schema.get("type")):
                return False

        return True

    def success(self, data: Any = None, **context) -> ToolExecutionResult:
        return ToolExecutionResult(
            success=True, tool_name=self.name, data=data, context=context
        )

    def failure(self, message: str, **context) -> ToolExecutionResult:
        return ToolExecutionResult(
            success=False, tool_name=self.name, error=message, context=context
        )

    async def run(self, **kwargs) -> Any:
        """Perform the tool's side effect. Always async.

        Parameters are validated before this is called. Return plain data
        (wrapped into a success result), a ToolExecutionResult, or raise
        ToolExecutionError to report a failure.
        """
        raise NotImplementedError

    async def execute(self, parameters: dict) -> ToolExecutionResult:
        """Validate and run the tool. Never raises."""
        if not self.validate(parameters):
            return self.failure("Invalid parameters provided", parameters=parameters)

        try:
            kwargs = dict(parameters)
            if self.input_model is not None:
                kwargs = self.input_model(**parameters).model_dump()
            data = await self.run(**kwargs)

        except ValidationError as e:
            return self.failure(f"Validation error: {e}", parameters=parameters)

        except ToolExecutionError as e:
            return self.failure(str(e), **e.context)

        except Exception as e:
            logger.warning(f"Tool '{self.name}' raised exception: {e}")
            return self.failure(f"Tool execution failed: {e}")

        if isinstance(data, ToolExecutionResult):
            return data
        return self.success(data)
