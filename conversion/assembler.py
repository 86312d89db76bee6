import copy
import json
import logging
import pathlib
from typing import Iterator

from .document import SceneDocument, RENDER_KEY, RENDERABLE_KEY, entity
from .errors import ConversionError
from .naming import reference, is_reference, dereference

logger = logging.getLogger(__name__)

# ========================================================================================

def iter_references(value) -> Iterator[str]:
    """
    Yield all reference tokens nested anywhere in a document value.
    """

    if is_reference(value):
        yield value
    elif isinstance(value, dict):
        for v in value.values():
            yield from iter_references(v)
    elif isinstance(value, list):
        for v in value:
            yield from iter_references(v)

def validate_references(library: dict, render: dict) -> None:
    """
    Check that every reference in the library and the render root names a library entity.

    Raises:
        ConversionError: on the first unresolved reference
    """

    for owner, value in [*library.items(), (RENDER_KEY, render)]:
        for token in iter_references(value):
            if dereference(token) not in library:
                raise ConversionError(f"Unresolved reference '{token}' in '{owner}'.")

def assemble(doc: SceneDocument, stem: str) -> tuple[dict, dict]:
    """
    Split a converted document into the entity library and the entry document importing it.

    The visible shapes of the render root are moved into a group entity, which becomes the
    only shape of the render root.

    Args:
        doc: the converted document, left unchanged
        stem: the file name stem of the source scene

    Returns:
        library: every named entity
        entry: the render root and the import of the library
    """

    library = copy.deepcopy(doc.entities)
    render = copy.deepcopy(doc.render)
    library[RENDERABLE_KEY] = entity("Shape", "Group", {"shapes": render.pop("shapes")})
    render["shapes"] = [reference(RENDERABLE_KEY)]
    validate_references(library, render)

    entry = {
        RENDER_KEY: render,
        "import": [f"{stem}.exported.json"],
    }
    return library, entry

def write_scene(doc: SceneDocument, base_dir: pathlib.Path, stem: str, indent: int = 4) -> tuple[pathlib.Path, pathlib.Path]:
    """
    Assemble and write the library and entry documents beside the source scene.

    Args:
        doc: the converted document
        base_dir: the output directory
        stem: the file name stem of the source scene
        indent: the JSON indentation

    Returns:
        library_file: the path of the written library document
        entry_file: the path of the written entry document
    """

    library, entry = assemble(doc, stem)
    library_file = base_dir / f"{stem}.exported.json"
    entry_file = base_dir / f"{stem}.json"
    for path, content in ((library_file, library), (entry_file, entry)):
        with open(path, "w") as f:
            json.dump(content, f, indent=indent)
        logger.info(f"Saved {path}")
    return library_file, entry_file
