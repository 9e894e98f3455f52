from pathlib import Path
from typing import Any
from fastapi.templating import Jinja2Templates
from jinja2 import Undefined, pass_context
from jinja2.runtime import Context
import json
from .utils.logger import get_logger

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

_SCALARS = (str, int, float, bool)


def _loose_equals(v1: Any, v2: Any) -> bool:
    if v1 == v2:
        return True
    if isinstance(v1, _SCALARS) and isinstance(v2, _SCALARS):
        return str(v1) == str(v2)
    return False


def _ordered(compare):
    def check(v1: Any, v2: Any) -> bool:
        try:
            return bool(compare(v1, v2))
        except TypeError:
            return False
    return check


_OPERATORS = {
    "==": _loose_equals,
    "===": lambda v1, v2: type(v1) is type(v2) and v1 == v2,
    "!=": lambda v1, v2: not _loose_equals(v1, v2),
    "!==": lambda v1, v2: not (type(v1) is type(v2) and v1 == v2),
    "<": _ordered(lambda v1, v2: v1 < v2),
    "<=": _ordered(lambda v1, v2: v1 <= v2),
    ">": _ordered(lambda v1, v2: v1 > v2),
    ">=": _ordered(lambda v1, v2: v1 >= v2),
    "&&": lambda v1, v2: bool(v1 and v2),
    "||": lambda v1, v2: bool(v1 or v2),
}


def if_cond(v1: Any, operator: str, v2: Any) -> bool:
    """
    Compare two values with a JavaScript-style operator.

    ``==`` compares scalars by their string form, ``===`` also requires
    matching types. Unknown operators are always false.
    """
    check = _OPERATORS.get(operator)
    if check is None:
        return False
    # Missing template values compare like null
    v1 = None if isinstance(v1, Undefined) else v1
    v2 = None if isinstance(v2, Undefined) else v2
    return check(v1, v2)


@pass_context
def debug(context: Context, optional_value: Any = None) -> str:
    """Log the template context (and a value) while rendering."""
    logger.debug("Current Context")
    logger.debug("====================")
    logger.debug({key: value for key, value in context.items() if key != "request"})

    if optional_value is not None:
        logger.debug("Value")
        logger.debug("====================")
        logger.debug(optional_value)
    return ""


def beautiful(value: Any) -> str:
    return json.dumps(value, indent=4, default=str)


def create_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.globals["if_cond"] = if_cond
    templates.env.globals["debug"] = debug
    templates.env.filters["beautiful"] = beautiful
    return templates


templates = create_templates()
