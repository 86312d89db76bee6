import logging
import numpy as np
from dataclasses import dataclass

from .errors import SceneLoadError
from .tokenizer import Token
from .model import INVALID_INDEX, ColorTex, FloatTex

logger = logging.getLogger(__name__)

_TYPE_ALIASES = {
    "point": "point3",
    "vector": "vector3",
    "normal": "normal3",
    "normal3": "normal3",
    "color": "rgb",
}

_NUMERIC_TYPES = {"integer", "float", "point2", "vector2", "point3", "vector3", "normal3", "rgb", "spectrum", "blackbody"}

@dataclass
class Param:
    """
    A single typed parameter of a directive.

    Attributes:
        type: the declared parameter type, with aliases resolved
        name: the parameter name
        values: the raw values
        token: the declaration token, used for error locations
    """

    type: str
    name: str
    values: list
    token: Token

class ParamSet:
    """
    The parameter list following a scene directive.
    """

    def __init__(self, params: list[Param] = None) -> None:
        self.params: dict[str, Param] = {}
        for param in params or []:
            self.params[param.name] = param

    def __contains__(self, name: str) -> bool:
        return name in self.params

    def _find(self, name: str, types: tuple[str, ...]) -> Param | None:
        param = self.params.get(name)
        if param is None:
            return None
        if param.type not in types:
            raise SceneLoadError(f"Parameter '{name}' has type '{param.type}', expected one of {list(types)}",
                                 param.token.filename, param.token.line, param.token.column)
        return param

    def _error(self, param: Param, message: str) -> SceneLoadError:
        return SceneLoadError(message, param.token.filename, param.token.line, param.token.column)

    def find_float(self, name: str, default: float | None) -> float | None:
        param = self._find(name, ("float", "integer"))
        if param is None or not param.values:
            return default
        return float(param.values[0])

    def find_int(self, name: str, default: int | None) -> int | None:
        param = self._find(name, ("integer",))
        if param is None or not param.values:
            return default
        return int(param.values[0])

    def find_bool(self, name: str, default: bool) -> bool:
        param = self._find(name, ("bool",))
        if param is None or not param.values:
            return default
        return param.values[0]

    def find_string(self, name: str, default: str | None) -> str | None:
        param = self._find(name, ("string",))
        if param is None or not param.values:
            return default
        return param.values[0]

    def find_floats(self, name: str) -> np.ndarray | None:
        param = self._find(name, ("float", "point2", "vector2", "point3", "vector3", "normal3"))
        if param is None:
            return None
        return np.asarray(param.values, dtype=float)

    def find_ints(self, name: str) -> np.ndarray | None:
        param = self._find(name, ("integer",))
        if param is None:
            return None
        return np.asarray(param.values, dtype=np.int64)

    def find_point3(self, name: str, default: tuple[float, float, float]) -> tuple[float, float, float]:
        param = self._find(name, ("point3", "vector3", "normal3"))
        if param is None:
            return default
        if len(param.values) != 3:
            raise self._error(param, f"Parameter '{name}' requires 3 values")
        return tuple(float(v) for v in param.values)

    def find_rgb(self, name: str, default: tuple[float, float, float]) -> tuple[float, float, float]:
        param = self._find(name, ("rgb", "spectrum", "blackbody", "float"))
        if param is None:
            return default
        match param.type:
            case "rgb":
                if len(param.values) != 3:
                    raise self._error(param, f"Parameter '{name}' requires 3 values")
                return tuple(float(v) for v in param.values)
            case "float" if len(param.values) == 1:
                v = float(param.values[0])
                return (v, v, v)
            case _:
                logger.warning(f"Ignored unsupported {param.type} value for parameter '{name}' at "
                               f"{param.token.filename}:{param.token.line}. Using the default value.")
                return default

    def find_texture_name(self, name: str) -> str | None:
        param = self.params.get(name)
        if param is None or param.type != "texture":
            return None
        return param.values[0]

    def find_float_tex(self, name: str, default: float, textures: dict[str, int]) -> FloatTex:
        """
        Look up a float parameter that may be bound to a named texture.

        Args:
            name: the parameter name
            default: the constant used when the parameter is absent
            textures: the visible float textures by name

        Returns:
            tex: the texture index or constant value
        """

        texture_name = self.find_texture_name(name)
        if texture_name is not None:
            if texture_name not in textures:
                raise self._error(self.params[name], f"Unknown float texture '{texture_name}'")
            return FloatTex(default, textures[texture_name])
        return FloatTex(self.find_float(name, default), INVALID_INDEX)

    def find_color_tex(self, name: str, default: tuple[float, float, float], textures: dict[str, int]) -> ColorTex:
        """
        Look up a color parameter that may be bound to a named texture.

        Args:
            name: the parameter name
            default: the constant used when the parameter is absent
            textures: the visible spectrum textures by name

        Returns:
            tex: the texture index or constant value
        """

        texture_name = self.find_texture_name(name)
        if texture_name is not None:
            if texture_name not in textures:
                raise self._error(self.params[name], f"Unknown spectrum texture '{texture_name}'")
            return ColorTex(default, textures[texture_name])
        return ColorTex(self.find_rgb(name, default), INVALID_INDEX)

def parse_param_values(param_type: str, raw: list[Token]) -> list:
    """
    Convert raw value tokens to Python values for a parameter type.

    Args:
        param_type: the resolved parameter type
        raw: the value tokens

    Returns:
        values: the converted values
    """

    values = []
    for token in raw:
        if param_type == "spectrum" and token.kind == "string":
            values.append(token.value)
        elif param_type in _NUMERIC_TYPES:
            if token.kind != "number":
                raise SceneLoadError(f"Expected a number, got '{token.value}'", token.filename, token.line, token.column)
            try:
                values.append(int(token.value) if param_type == "integer" else float(token.value))
            except ValueError:
                raise SceneLoadError(f"Malformed number '{token.value}'", token.filename, token.line, token.column)
        elif param_type == "bool":
            if token.value not in ("true", "false"):
                raise SceneLoadError(f"Expected 'true' or 'false', got '{token.value}'", token.filename, token.line, token.column)
            values.append(token.value == "true")
        else:
            if token.kind != "string":
                raise SceneLoadError(f"Expected a string, got '{token.value}'", token.filename, token.line, token.column)
            values.append(token.value)
    return values

def resolve_param_type(declared: str) -> str:
    return _TYPE_ALIASES.get(declared, declared)
