import copy
import logging
import math
import pathlib
import numpy as np
from dataclasses import dataclass, field

from .errors import SceneLoadError
from .params import Param, ParamSet, parse_param_values, resolve_param_type
from .tokenizer import Token, tokenize, tokenize_file
from .model import *

logger = logging.getLogger(__name__)

# ========================================================================================

@dataclass
class _GraphicsState:
    material: int = INVALID_INDEX
    area_light: int = INVALID_INDEX
    reverse_orientation: bool = False
    inside_medium: int = INVALID_INDEX
    outside_medium: int = INVALID_INDEX
    float_textures: dict[str, int] = field(default_factory=dict)
    spectrum_textures: dict[str, int] = field(default_factory=dict)
    named_materials: dict[str, int] = field(default_factory=dict)

_DEFAULT_FILTER_WIDTHS = {
    "box": 0.5,
    "gaussian": 2.0,
    "mitchell": 2.0,
    "sinc": 4.0,
    "triangle": 2.0,
}

# ========================================================================================

def _translate(delta) -> np.ndarray:
    m = np.eye(4)
    m[:3, 3] = delta
    return m

def _scale(s) -> np.ndarray:
    return np.diag([s[0], s[1], s[2], 1.0])

def _rotate(angle_degrees: float, axis) -> np.ndarray:
    a = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(a)
    if norm == 0.0:
        return np.eye(4)
    x, y, z = a / norm
    theta = math.radians(angle_degrees)
    s, c = math.sin(theta), math.cos(theta)
    m = np.eye(4)
    m[0, :3] = [x * x + (1 - x * x) * c, x * y * (1 - c) - z * s, x * z * (1 - c) + y * s]
    m[1, :3] = [x * y * (1 - c) + z * s, y * y + (1 - y * y) * c, y * z * (1 - c) - x * s]
    m[2, :3] = [x * z * (1 - c) - y * s, y * z * (1 - c) + x * s, z * z + (1 - z * z) * c]
    return m

def _look_at(pos, look, up) -> np.ndarray | None:
    pos, look, up = (np.asarray(v, dtype=float) for v in (pos, look, up))
    direction = look - pos
    if np.linalg.norm(direction) == 0.0 or np.linalg.norm(up) == 0.0:
        return None
    direction = direction / np.linalg.norm(direction)
    right = np.cross(up / np.linalg.norm(up), direction)
    if np.linalg.norm(right) == 0.0:
        return None
    right = right / np.linalg.norm(right)
    new_up = np.cross(direction, right)
    camera_to_world = np.eye(4)
    camera_to_world[:3, 0] = right
    camera_to_world[:3, 1] = new_up
    camera_to_world[:3, 2] = direction
    camera_to_world[:3, 3] = pos
    return np.linalg.inv(camera_to_world)

# ========================================================================================

class SceneLoader:
    """
    Loader for pbrt-v3 scene files.

    Shapes declared between ObjectBegin and ObjectEnd are stored contiguously, and their
    shape_to_world holds the placement relative to the object, i.e. the object's CTM at
    ObjectBegin is factored out into Object.object_to_instance.
    """

    def __init__(self) -> None:
        self.scene: Scene = None
        self.base_dir: pathlib.Path = None
        self._tokens: list[Token] = []
        self._pos = 0

    # ------------------------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------------------------

    def load(self, path: pathlib.Path) -> Scene:
        """
        Load a scene file.

        Args:
            path: the path to the .pbrt file

        Returns:
            scene: the parsed scene
        """

        path = pathlib.Path(path)
        self.base_dir = path.parent
        return self._run(tokenize_file(path))

    def load_string(self, text: str, base_dir: pathlib.Path | str = ".") -> Scene:
        """
        Load a scene from source text.

        Args:
            text: the scene source text
            base_dir: the directory relative file names are resolved against

        Returns:
            scene: the parsed scene
        """

        self.base_dir = pathlib.Path(base_dir)
        return self._run(tokenize(text, "<string>"))

    # ------------------------------------------------------------------------------------

    def _run(self, tokens: list[Token]) -> Scene:
        self.scene = Scene()
        self._tokens = tokens
        self._pos = 0

        self._ctm = [np.eye(4), np.eye(4)]
        self._active = (True, True)
        self._ctm_stack: list = []
        self._coordinate_systems: dict[str, list[np.ndarray]] = {}
        self._state = _GraphicsState()
        self._state_stack: list = []
        self._objects: dict[str, int] = {}
        self._current_object = INVALID_INDEX
        self._mediums: dict[str, int] = {}
        self._constant_alphas: dict[float, int] = {}
        self._file_dirs: dict[str, pathlib.Path] = {}

        while self._pos < len(self._tokens):
            token = self._next()
            if token.kind != "identifier":
                raise self._error(token, f"Expected a directive, got '{token.value}'")
            handler = getattr(self, f"_directive_{token.value}", None)
            if handler is None:
                raise self._error(token, f"Unknown directive '{token.value}'")
            handler(token)

        return self.scene

    # ------------------------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------------------------

    def _error(self, token: Token, message: str) -> SceneLoadError:
        return SceneLoadError(message, token.filename, token.line, token.column)

    def _peek(self) -> Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> Token:
        if self._pos >= len(self._tokens):
            last = self._tokens[-1] if self._tokens else Token("", "", "<string>", 0, 0)
            raise self._error(last, "Unexpected end of file")
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def _string(self) -> str:
        token = self._next()
        if token.kind != "string":
            raise self._error(token, f"Expected a quoted string, got '{token.value}'")
        return token.value

    def _numbers(self, count: int) -> list[float]:
        bracketed = self._peek() is not None and self._peek().kind == "["
        if bracketed:
            self._next()
        values = []
        for _ in range(count):
            token = self._next()
            if token.kind != "number":
                raise self._error(token, f"Expected a number, got '{token.value}'")
            try:
                values.append(float(token.value))
            except ValueError:
                raise self._error(token, f"Malformed number '{token.value}'")
        if bracketed:
            token = self._next()
            if token.kind != "]":
                raise self._error(token, "Expected ']'")
        return values

    def _params(self) -> ParamSet:
        params = []
        while (token := self._peek()) is not None and token.kind == "string":
            self._next()
            declaration = token.value.split()
            if len(declaration) != 2:
                raise self._error(token, f"Malformed parameter declaration '{token.value}'")
            param_type = resolve_param_type(declaration[0])
            raw = []
            if self._peek() is not None and self._peek().kind == "[":
                self._next()
                while (value := self._next()).kind != "]":
                    raw.append(value)
            else:
                raw.append(self._next())
            params.append(Param(param_type, declaration[1], parse_param_values(param_type, raw), token))
        return ParamSet(params)

    def _resolve_filename(self, token: Token, filename: str) -> str:
        """Resolve a file name written in an included file against that file's directory."""
        current_dir = self._file_dirs.get(token.filename)
        if current_dir is None or current_dir == self.base_dir or pathlib.Path(filename).is_absolute():
            return filename
        return str(current_dir / filename)

    # ------------------------------------------------------------------------------------
    # Transform directives
    # ------------------------------------------------------------------------------------

    def _apply(self, matrix: np.ndarray, replace: bool = False) -> None:
        for i in range(2):
            if self._active[i]:
                self._ctm[i] = matrix.copy() if replace else self._ctm[i] @ matrix

    def _directive_Identity(self, token: Token) -> None:
        self._apply(np.eye(4), replace=True)

    def _directive_Translate(self, token: Token) -> None:
        self._apply(_translate(self._numbers(3)))

    def _directive_Scale(self, token: Token) -> None:
        self._apply(_scale(self._numbers(3)))

    def _directive_Rotate(self, token: Token) -> None:
        angle, x, y, z = self._numbers(4)
        self._apply(_rotate(angle, (x, y, z)))

    def _directive_LookAt(self, token: Token) -> None:
        v = self._numbers(9)
        matrix = _look_at(v[0:3], v[3:6], v[6:9])
        if matrix is None:
            logger.warning(f"Ignored degenerate LookAt at {token.filename}:{token.line}.")
            return
        self._apply(matrix)

    def _directive_Transform(self, token: Token) -> None:
        # Matrices are given in column-major order
        self._apply(np.asarray(self._numbers(16)).reshape(4, 4).T, replace=True)

    def _directive_ConcatTransform(self, token: Token) -> None:
        self._apply(np.asarray(self._numbers(16)).reshape(4, 4).T)

    def _directive_CoordinateSystem(self, token: Token) -> None:
        self._coordinate_systems[self._string()] = [m.copy() for m in self._ctm]

    def _directive_CoordSysTransform(self, token: Token) -> None:
        name = self._string()
        if name not in self._coordinate_systems:
            logger.warning(f"Ignored unknown coordinate system '{name}' at {token.filename}:{token.line}.")
            return
        self._ctm = [m.copy() for m in self._coordinate_systems[name]]

    def _directive_ActiveTransform(self, token: Token) -> None:
        which = self._next()
        match which.value:
            case "StartTime":
                self._active = (True, False)
            case "EndTime":
                self._active = (False, True)
            case "All":
                self._active = (True, True)
            case _:
                raise self._error(which, f"Unknown active transform '{which.value}'")

    def _directive_TransformTimes(self, token: Token) -> None:
        self.scene.start_time, self.scene.end_time = self._numbers(2)

    def _directive_ReverseOrientation(self, token: Token) -> None:
        self._state.reverse_orientation = not self._state.reverse_orientation

    # ------------------------------------------------------------------------------------
    # Block directives
    # ------------------------------------------------------------------------------------

    def _directive_WorldBegin(self, token: Token) -> None:
        self._ctm = [np.eye(4), np.eye(4)]
        self._coordinate_systems["world"] = [np.eye(4), np.eye(4)]

    def _directive_WorldEnd(self, token: Token) -> None:
        pass

    def _directive_AttributeBegin(self, token: Token) -> None:
        self._state_stack.append((copy.deepcopy(self._state), [m.copy() for m in self._ctm], self._active))

    def _directive_AttributeEnd(self, token: Token) -> None:
        if not self._state_stack:
            raise self._error(token, "Unmatched AttributeEnd")
        self._state, self._ctm, self._active = self._state_stack.pop()

    def _directive_TransformBegin(self, token: Token) -> None:
        self._ctm_stack.append(([m.copy() for m in self._ctm], self._active))

    def _directive_TransformEnd(self, token: Token) -> None:
        if not self._ctm_stack:
            raise self._error(token, "Unmatched TransformEnd")
        self._ctm, self._active = self._ctm_stack.pop()

    def _directive_ObjectBegin(self, token: Token) -> None:
        name = self._string()
        if self._current_object != INVALID_INDEX:
            raise self._error(token, "ObjectBegin called inside of an object definition")
        self._directive_AttributeBegin(token)
        self._objects[name] = len(self.scene.objects)
        self._current_object = len(self.scene.objects)
        self.scene.objects.append(Object(name, INVALID_INDEX, 0, Transform(self._ctm[0].copy(), self._ctm[1].copy())))

    def _directive_ObjectEnd(self, token: Token) -> None:
        if self._current_object == INVALID_INDEX:
            raise self._error(token, "ObjectEnd called outside of an object definition")
        self._current_object = INVALID_INDEX
        self._directive_AttributeEnd(token)

    def _directive_ObjectInstance(self, token: Token) -> None:
        name = self._string()
        self.scene.instances.append(Instance(
            object=self._objects.get(name, INVALID_INDEX),
            instance_to_world=Transform(self._ctm[0].copy(), self._ctm[1].copy()),
            area_light=self._state.area_light,
            inside_medium=self._state.inside_medium,
            outside_medium=self._state.outside_medium,
            reverse_orientation=self._state.reverse_orientation,
        ))

    def _directive_Include(self, token: Token) -> None:
        self._splice(token, self._string())

    def _directive_Import(self, token: Token) -> None:
        self._splice(token, self._string())

    def _splice(self, token: Token, filename: str) -> None:
        current_dir = self._file_dirs.get(token.filename, self.base_dir)
        path = pathlib.Path(filename)
        if not path.is_absolute():
            path = current_dir / path
        included = tokenize_file(path)
        self._file_dirs[str(path)] = path.parent
        self._tokens[self._pos:self._pos] = included

    # ------------------------------------------------------------------------------------
    # Rendering options
    # ------------------------------------------------------------------------------------

    def _directive_Camera(self, token: Token) -> None:
        kind = self._string()
        params = self._params()
        camera_to_world = Transform(np.linalg.inv(self._ctm[0]), np.linalg.inv(self._ctm[1]))
        self._coordinate_systems["camera"] = [camera_to_world.start.copy(), camera_to_world.end.copy()]
        if kind != "perspective":
            self.scene.camera = UnsupportedCamera(kind=kind, camera_to_world=camera_to_world)
            return
        screen = params.find_floats("screenwindow")
        self.scene.camera = PerspectiveCamera(
            camera_to_world=camera_to_world,
            fov=params.find_float("fov", 90.0),
            lensradius=params.find_float("lensradius", 0.0),
            focaldistance=params.find_float("focaldistance", 1e6),
            frameaspectratio=params.find_float("frameaspectratio", None),
            screenwindow=tuple(screen) if screen is not None and len(screen) == 4 else None,
        )

    def _directive_Film(self, token: Token) -> None:
        kind = self._string()
        params = self._params()
        if kind != "image":
            raise self._error(token, f"Unsupported film type '{kind}'")
        crop = params.find_floats("cropwindow")
        self.scene.film = ImageFilm(
            xresolution=params.find_int("xresolution", 640),
            yresolution=params.find_int("yresolution", 480),
            cropwindow=tuple(crop) if crop is not None and len(crop) == 4 else (0.0, 1.0, 0.0, 1.0),
            scale=params.find_float("scale", 1.0),
            maxsampleluminance=params.find_float("maxsampleluminance", float("inf")),
            diagonal=params.find_float("diagonal", 35.0),
            filename=params.find_string("filename", None),
        )

    def _directive_PixelFilter(self, token: Token) -> None:
        kind = self._string()
        params = self._params()
        width = _DEFAULT_FILTER_WIDTHS.get(kind, 0.5)
        self.scene.filter = Filter(kind, params.find_float("xwidth", width), params.find_float("ywidth", width))

    def _directive_Sampler(self, token: Token) -> None:
        kind = self._string()
        params = self._params()
        self.scene.sampler = Sampler(kind, params.find_int("pixelsamples", None))

    def _directive_Integrator(self, token: Token) -> None:
        kind = self._string()
        params = self._params()
        self.scene.integrator = Integrator(kind, params.find_int("maxdepth", None))

    def _directive_Accelerator(self, token: Token) -> None:
        self._string()
        self._params()

    def _directive_MakeNamedMedium(self, token: Token) -> None:
        name = self._string()
        self._params()
        self._mediums[name] = len(self.scene.mediums)
        self.scene.mediums.append(name)

    def _directive_MediumInterface(self, token: Token) -> None:
        inside = self._string()
        outside = inside
        if (nxt := self._peek()) is not None and nxt.kind == "string":
            outside = self._string()
        self._state.inside_medium = self._mediums.get(inside, INVALID_INDEX)
        self._state.outside_medium = self._mediums.get(outside, INVALID_INDEX)

    # ------------------------------------------------------------------------------------
    # Textures and materials
    # ------------------------------------------------------------------------------------

    def _directive_Texture(self, token: Token) -> None:
        name = self._string()
        data_type = self._string()
        kind = self._string()
        params = self._params()
        if data_type == "color":
            data_type = "spectrum"
        if data_type not in ("float", "spectrum"):
            raise self._error(token, f"Unknown texture data type '{data_type}'")

        is_float = data_type == "float"
        textures = self._state.float_textures if is_float else self._state.spectrum_textures

        def operand(param_name: str) -> ColorTex:
            if is_float:
                t = params.find_float_tex(param_name, 1.0, self._state.float_textures)
                return ColorTex((t.value, t.value, t.value), t.texture)
            return params.find_color_tex(param_name, (1.0, 1.0, 1.0), self._state.spectrum_textures)

        match kind:
            case "constant":
                if is_float:
                    v = params.find_float("value", 1.0)
                    value = (v, v, v)
                else:
                    value = params.find_rgb("value", (1.0, 1.0, 1.0))
                texture = ConstantTexture(name=name, data_type=data_type, value=value)
            case "imagemap":
                filename = params.find_string("filename", None)
                if filename is None:
                    raise self._error(token, f"Image texture '{name}' has no filename")
                texture = ImageMapTexture(
                    name=name,
                    data_type=data_type,
                    filename=self._resolve_filename(token, filename),
                    mapping=params.find_string("mapping", "uv"),
                    uscale=params.find_float("uscale", 1.0),
                    vscale=params.find_float("vscale", 1.0),
                    udelta=params.find_float("udelta", 0.0),
                    vdelta=params.find_float("vdelta", 0.0),
                    scale=params.find_float("scale", 1.0),
                    gamma=params.find_bool("gamma", filename.lower().endswith((".tga", ".png"))),
                )
            case "scale":
                texture = ScaleTexture(name=name, data_type=data_type, tex1=operand("tex1"), tex2=operand("tex2"))
            case _:
                texture = UnsupportedTexture(name=name, data_type=data_type, kind=kind)

        textures[name] = len(self.scene.textures)
        self.scene.textures.append(texture)

    def _make_material(self, token: Token, kind: str, name: str | None, params: ParamSet) -> Material:
        ft = self._state.float_textures
        st = self._state.spectrum_textures

        def color(param_name, default):
            return params.find_color_tex(param_name, default, st)

        def scalar(param_name, default):
            return params.find_float_tex(param_name, default, ft)

        def roughness(default):
            # A single "roughness" sets both directions
            base = scalar("roughness", default)
            if "uroughness" not in params and "vroughness" not in params:
                return base, copy.copy(base)
            return scalar("uroughness", base.value), scalar("vroughness", base.value)

        common = {"name": name}
        bump = params.find_texture_name("bumpmap")
        if bump is not None:
            if bump not in ft:
                raise self._error(token, f"Unknown float texture '{bump}'")
            common["bumpmap"] = ft[bump]

        match kind:
            case "" | "none":
                return NoneMaterial(**common)
            case "matte":
                return MatteMaterial(**common, Kd=color("Kd", (0.5, 0.5, 0.5)), sigma=scalar("sigma", 0.0))
            case "plastic":
                return PlasticMaterial(**common, Kd=color("Kd", (0.25, 0.25, 0.25)), Ks=color("Ks", (0.25, 0.25, 0.25)),
                                       roughness=scalar("roughness", 0.1),
                                       remaproughness=params.find_bool("remaproughness", True))
            case "metal":
                u, v = roughness(0.01)
                return MetalMaterial(**common, eta=color("eta", MetalMaterial().eta.value), k=color("k", MetalMaterial().k.value),
                                     uroughness=u, vroughness=v, remaproughness=params.find_bool("remaproughness", True))
            case "mirror":
                return MirrorMaterial(**common, Kr=color("Kr", (0.9, 0.9, 0.9)))
            case "glass":
                u, v = roughness(0.0)
                eta = scalar("eta", 1.5) if "eta" in params else scalar("index", 1.5)
                return GlassMaterial(**common, Kr=color("Kr", (1.0, 1.0, 1.0)), Kt=color("Kt", (1.0, 1.0, 1.0)), eta=eta,
                                     uroughness=u, vroughness=v, remaproughness=params.find_bool("remaproughness", True))
            case "substrate":
                u, v = roughness(0.1)
                return SubstrateMaterial(**common, Kd=color("Kd", (0.5, 0.5, 0.5)), Ks=color("Ks", (0.5, 0.5, 0.5)),
                                         uroughness=u, vroughness=v, remaproughness=params.find_bool("remaproughness", True))
            case "translucent":
                return TranslucentMaterial(**common, Kd=color("Kd", (0.25, 0.25, 0.25)), Ks=color("Ks", (0.25, 0.25, 0.25)),
                                           reflect=color("reflect", (0.5, 0.5, 0.5)), transmit=color("transmit", (0.5, 0.5, 0.5)),
                                           roughness=scalar("roughness", 0.1),
                                           remaproughness=params.find_bool("remaproughness", True))
            case "uber":
                u, v = roughness(0.0)
                eta = scalar("eta", 1.5) if "eta" in params else scalar("index", 1.5)
                return UberMaterial(**common, Kd=color("Kd", (0.25, 0.25, 0.25)), Ks=color("Ks", (0.25, 0.25, 0.25)),
                                    Kr=color("Kr", (0.0, 0.0, 0.0)), Kt=color("Kt", (0.0, 0.0, 0.0)), eta=eta,
                                    opacity=color("opacity", (1.0, 1.0, 1.0)), uroughness=u, vroughness=v,
                                    remaproughness=params.find_bool("remaproughness", True))
            case "disney":
                return DisneyMaterial(**common, color=color("color", (0.5, 0.5, 0.5)), anisotropic=scalar("anisotropic", 0.0),
                                      clearcoat=scalar("clearcoat", 0.0), clearcoatgloss=scalar("clearcoatgloss", 1.0),
                                      eta=scalar("eta", 1.5), metallic=scalar("metallic", 0.0),
                                      roughness=scalar("roughness", 0.5), sheen=scalar("sheen", 0.0),
                                      sheentint=scalar("sheentint", 0.5), spectrans=scalar("spectrans", 0.0),
                                      speculartint=scalar("speculartint", 0.0), thin=params.find_bool("thin", False),
                                      difftrans=color("difftrans", (1.0, 1.0, 1.0)), flatness=color("flatness", (0.0, 0.0, 0.0)))
            case "mix":
                named = self._state.named_materials
                return MixMaterial(**common,
                                   namedmaterial1=named.get(params.find_string("namedmaterial1", ""), INVALID_INDEX),
                                   namedmaterial2=named.get(params.find_string("namedmaterial2", ""), INVALID_INDEX),
                                   amount=color("amount", (0.5, 0.5, 0.5)))
            case _:
                return UnsupportedMaterial(**common, kind=kind)

    def _directive_Material(self, token: Token) -> None:
        kind = self._string()
        params = self._params()
        self._state.material = len(self.scene.materials)
        self.scene.materials.append(self._make_material(token, kind, None, params))

    def _directive_MakeNamedMaterial(self, token: Token) -> None:
        name = self._string()
        params = self._params()
        kind = params.find_string("type", None)
        if kind is None:
            raise self._error(token, f"Named material '{name}' has no type")
        self._state.named_materials[name] = len(self.scene.materials)
        self.scene.materials.append(self._make_material(token, kind, name, params))

    def _directive_NamedMaterial(self, token: Token) -> None:
        name = self._string()
        if name not in self._state.named_materials:
            raise self._error(token, f"Unknown named material '{name}'")
        self._state.material = self._state.named_materials[name]

    # ------------------------------------------------------------------------------------
    # Lights
    # ------------------------------------------------------------------------------------

    def _directive_AreaLightSource(self, token: Token) -> None:
        kind = self._string()
        params = self._params()
        if kind != "diffuse":
            raise self._error(token, f"Unsupported area light type '{kind}'")
        self._state.area_light = len(self.scene.area_lights)
        self.scene.area_lights.append(DiffuseAreaLight(
            scale=params.find_rgb("scale", (1.0, 1.0, 1.0)),
            L=params.find_rgb("L", (1.0, 1.0, 1.0)),
            twosided=params.find_bool("twosided", False),
            samples=params.find_int("samples", params.find_int("nsamples", 1)),
        ))

    def _directive_LightSource(self, token: Token) -> None:
        kind = self._string()
        params = self._params()
        common = {
            "scale": params.find_rgb("scale", (1.0, 1.0, 1.0)),
            "light_to_world": Transform(self._ctm[0].copy(), self._ctm[1].copy()),
        }
        match kind:
            case "point":
                light = PointLight(**common, I=params.find_rgb("I", (1.0, 1.0, 1.0)),
                                   from_=params.find_point3("from", (0.0, 0.0, 0.0)))
            case "distant":
                light = DistantLight(**common, L=params.find_rgb("L", (1.0, 1.0, 1.0)),
                                     from_=params.find_point3("from", (0.0, 0.0, 0.0)),
                                     to=params.find_point3("to", (0.0, 0.0, 1.0)))
            case "infinite":
                mapname = params.find_string("mapname", None)
                light = InfiniteLight(**common, L=params.find_rgb("L", (1.0, 1.0, 1.0)),
                                      mapname=self._resolve_filename(token, mapname) if mapname else None,
                                      samples=params.find_int("samples", params.find_int("nsamples", 1)))
            case _:
                light = UnsupportedLight(**common, kind=kind)
        self.scene.lights.append(light)

    # ------------------------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------------------------

    def _constant_alpha(self, value: float) -> int:
        # Shapes with the same constant alpha share one texture
        if value not in self._constant_alphas:
            self._constant_alphas[value] = len(self.scene.textures)
            self.scene.textures.append(ConstantTexture(data_type="float", value=(value, value, value)))
        return self._constant_alphas[value]

    def _directive_Shape(self, token: Token) -> None:
        kind = self._string()
        params = self._params()

        shape_to_world = Transform(self._ctm[0].copy(), self._ctm[1].copy())
        if self._current_object != INVALID_INDEX:
            object_to_instance = self.scene.objects[self._current_object].object_to_instance
            shape_to_world = Transform(np.linalg.inv(object_to_instance.start) @ shape_to_world.start,
                                       np.linalg.inv(object_to_instance.end) @ shape_to_world.end)

        common = {
            "shape_to_world": shape_to_world,
            "material": self._state.material,
            "area_light": self._state.area_light,
            "inside_medium": self._state.inside_medium,
            "outside_medium": self._state.outside_medium,
            "reverse_orientation": self._state.reverse_orientation,
            "object": self._current_object,
        }

        alpha = params.find_texture_name("alpha")
        if alpha is not None:
            if alpha not in self._state.float_textures:
                raise self._error(token, f"Unknown float texture '{alpha}'")
            common["alpha"] = self._state.float_textures[alpha]
        elif (value := params.find_float("alpha", None)) is not None and value < 1.0:
            common["alpha"] = self._constant_alpha(value)

        match kind:
            case "sphere":
                shape = Sphere(**common, radius=params.find_float("radius", 1.0), zmin=params.find_float("zmin", None),
                               zmax=params.find_float("zmax", None), phimax=params.find_float("phimax", 360.0))
            case "trianglemesh":
                uv = params.find_floats("uv")
                if uv is None:
                    uv = params.find_floats("st")
                shape = TriangleMesh(**common, indices=params.find_ints("indices"), P=params.find_floats("P"),
                                     N=params.find_floats("N"), uv=uv)
                if shape.P is None:
                    raise self._error(token, "Triangle mesh has no vertex positions")
                if shape.indices is None and shape.num_vertices == 3:
                    shape.indices = np.arange(3, dtype=np.int64)
            case "plymesh":
                filename = params.find_string("filename", None)
                if filename is None:
                    raise self._error(token, "PLY mesh has no filename")
                shape = PLYMesh(**common, filename=self._resolve_filename(token, filename))
            case "heightfield":
                shape = HeightField(**common, nu=params.find_int("nu", 0), nv=params.find_int("nv", 0),
                                    Pz=params.find_floats("Pz"))
            case "loopsubdiv":
                shape = LoopSubdiv(**common, levels=params.find_int("levels", params.find_int("nlevels", 3)),
                                   indices=params.find_ints("indices"), P=params.find_floats("P"))
            case _:
                shape = UnsupportedShape(**common, kind=kind)

        if self._current_object != INVALID_INDEX:
            obj = self.scene.objects[self._current_object]
            if obj.first_shape == INVALID_INDEX:
                obj.first_shape = len(self.scene.shapes)
            obj.num_shapes += 1
        self.scene.shapes.append(shape)

# ========================================================================================

def load_scene(path: pathlib.Path) -> Scene:
    """
    Load a pbrt-v3 scene file.

    Args:
        path: the path to the scene file

    Returns:
        scene: the parsed scene
    """

    return SceneLoader().load(path)
