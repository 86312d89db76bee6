import copy

from .errors import ConversionError
from .naming import reference

RENDER_KEY = "render"
RENDERABLE_KEY = "renderable"

# ----------------------------------------------------------------------------------------

def entity(category: str, impl: str, prop: dict | None = None) -> dict:
    return {"type": category, "impl": impl, "prop": prop if prop is not None else {}}

def constant_texture(v) -> dict:
    return entity("Texture", "Constant", {"v": v})

# ----------------------------------------------------------------------------------------

class SceneDocument:
    """
    The name-indexed target document built up by the conversion stages.

    Entities are only ever added, never replaced. The render root is kept apart from the
    entities until the document is assembled.
    """

    def __init__(self, integrator: dict) -> None:
        """
        Initialize an empty document.

        Args:
            integrator: the integrator node of the render root
        """

        self.entities: dict[str, dict] = {}
        self.render: dict = {
            "integrator": integrator,
            "shapes": [],
        }

    def __contains__(self, name: str) -> bool:
        return name in self.entities

    def __len__(self) -> int:
        return len(self.entities)

    def add(self, name: str, record: dict) -> str:
        """
        Add an entity.

        Args:
            name: the unique entity name
            record: the {type, impl, prop} record

        Returns:
            reference: the reference token of the new entity
        """

        if name in (RENDER_KEY, RENDERABLE_KEY):
            raise ConversionError(f"Entity name '{name}' is reserved.")
        if name in self.entities:
            raise ConversionError(f"Duplicate entity '{name}'.")
        self.entities[name] = record
        return reference(name)

    def get(self, name: str) -> dict:
        if name not in self.entities:
            raise ConversionError(f"Unknown entity '{name}'.")
        return self.entities[name]

    def derive(self, base_name: str, name: str, **prop_overrides) -> str:
        """
        Add a copy of an existing entity under a new name with some properties replaced.
        The base entity is left untouched.

        Args:
            base_name: the name of the entity to copy
            name: the name of the derived entity
            prop_overrides: the properties to set on the copy

        Returns:
            reference: the reference token of the derived entity
        """

        record = copy.deepcopy(self.get(base_name))
        record["prop"].update(prop_overrides)
        return self.add(name, record)

    # ------------------------------------------------------------------------------------
    # Render root
    # ------------------------------------------------------------------------------------

    def add_visible_shape(self, name: str) -> None:
        self.render["shapes"].append(reference(name))

    @property
    def visible_shapes(self) -> list[str]:
        return self.render["shapes"]

    def set_environment(self, name: str) -> None:
        self.render["environment"] = reference(name)

    def set_cameras(self, cameras: list[dict]) -> None:
        self.render["cameras"] = cameras
