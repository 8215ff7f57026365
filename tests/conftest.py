"""Shared fixtures for the descriptor store tests."""

from pathlib import Path

import pytest

from yy_store.parsing.yy_parser import parse
from yy_store.resolvers.reference_resolver import ProjectIndex
from yy_store.schema.registry import SchemaRegistry
from yy_store.serialization.yy_serializer import FormatStyle, serialize

OBJ_ARROW_UP_PATH = "objects/obj_arrow_up/obj_arrow_up.yy"
OBJ_ARROW_PARENT_PATH = "objects/obj_arrow_parent/obj_arrow_parent.yy"
SPR_ARROW_UP_PATH = "sprites/spr_arrow_up/spr_arrow_up.yy"

# Written the way the GameMaker IDE writes object descriptors.
OBJ_ARROW_UP = '''{
  "spriteId": {
    "name": "spr_arrow_up",
    "path": "sprites/spr_arrow_up/spr_arrow_up.yy",
  },
  "solid": false,
  "visible": true,
  "spriteMaskId": null,
  "persistent": false,
  "parentObjectId": {
    "name": "obj_arrow_parent",
    "path": "objects/obj_arrow_parent/obj_arrow_parent.yy",
  },
  "physicsObject": false,
  "physicsSensor": false,
  "physicsShape": 1,
  "physicsGroup": 1,
  "physicsDensity": 0.5,
  "physicsRestitution": 0.1,
  "physicsLinearDamping": 0.1,
  "physicsAngularDamping": 0.1,
  "physicsFriction": 0.2,
  "physicsStartAwake": true,
  "physicsKinematic": false,
  "physicsShapePoints": [],
  "eventList": [
    {"isDnD":false,"eventNum":0,"eventType":0,"collisionObjectId":null,"parent":{"name":"obj_arrow_up","path":"objects/obj_arrow_up/obj_arrow_up.yy",},"resourceVersion":"1.0","name":"","tags":[],"resourceType":"GMEvent",},
    {"isDnD":false,"eventNum":0,"eventType":3,"collisionObjectId":null,"parent":{"name":"obj_arrow_up","path":"objects/obj_arrow_up/obj_arrow_up.yy",},"resourceVersion":"1.0","name":"","tags":[],"resourceType":"GMEvent",},
  ],
  "properties": [],
  "overriddenProperties": [],
  "parent": {
    "name": "Objects",
    "path": "folders/Objects.yy",
  },
  "resourceVersion": "1.0",
  "name": "obj_arrow_up",
  "tags": [
    "arrows",
    "ui",
  ],
  "resourceType": "GMObject",
}'''


def make_object(name, parent_object=None, sprite=None, events=None):
    """Build a minimal valid GMObject tree."""
    def ref(kind_dir, target):
        if target is None:
            return None
        return {"name": target, "path": f"{kind_dir}/{target}/{target}.yy"}

    return {
        "spriteId": ref("sprites", sprite),
        "solid": False,
        "visible": True,
        "spriteMaskId": None,
        "persistent": False,
        "parentObjectId": ref("objects", parent_object),
        "physicsObject": False,
        "physicsSensor": False,
        "physicsShape": 1,
        "physicsGroup": 1,
        "physicsDensity": 0.5,
        "physicsRestitution": 0.1,
        "physicsLinearDamping": 0.1,
        "physicsAngularDamping": 0.1,
        "physicsFriction": 0.2,
        "physicsStartAwake": True,
        "physicsKinematic": False,
        "physicsShapePoints": [],
        "eventList": events or [],
        "properties": [],
        "overriddenProperties": [],
        "parent": {"name": "Objects", "path": "folders/Objects.yy"},
        "resourceVersion": "1.0",
        "name": name,
        "tags": [],
        "resourceType": "GMObject",
    }


def make_sprite(name):
    """Build a minimal valid GMSprite tree with one frame."""
    own = {"name": name, "path": f"sprites/{name}/{name}.yy"}
    return {
        "bboxMode": 0,
        "collisionKind": 1,
        "type": 0,
        "origin": 4,
        "width": 32,
        "height": 32,
        "textureGroupId": {"name": "Default", "path": "texturegroups/Default"},
        "frames": [
            {
                "compositeImage": {
                    "FrameId": {"name": "5b3c8a0e-frame", "path": own["path"]},
                    "LayerId": None,
                    "resourceVersion": "1.0",
                    "name": "",
                    "tags": [],
                    "resourceType": "GMSpriteBitmap",
                },
                "images": [],
                "parent": dict(own),
                "resourceVersion": "1.0",
                "name": "5b3c8a0e-frame",
                "tags": [],
                "resourceType": "GMSpriteFrame",
            },
        ],
        "sequence": None,
        "layers": [],
        "nineSlice": None,
        "parent": {"name": "Sprites", "path": "folders/Sprites.yy"},
        "resourceVersion": "1.0",
        "name": name,
        "tags": [],
        "resourceType": "GMSprite",
    }


def make_script(name):
    return {
        "isDnD": False,
        "isCompatibility": False,
        "parent": {"name": "Scripts", "path": "folders/Scripts.yy"},
        "resourceVersion": "1.0",
        "name": name,
        "tags": [],
        "resourceType": "GMScript",
    }


@pytest.fixture(scope="session")
def registry():
    return SchemaRegistry.default(extra_dirs=[])


@pytest.fixture
def sample_text():
    return OBJ_ARROW_UP


@pytest.fixture
def sample_tree():
    return parse(OBJ_ARROW_UP)


@pytest.fixture
def full_index():
    """Index in which every reference of the sample descriptor resolves."""
    return ProjectIndex({
        "GMObject": {
            "obj_arrow_up": OBJ_ARROW_UP_PATH,
            "obj_arrow_parent": OBJ_ARROW_PARENT_PATH,
        },
        "GMSprite": {"spr_arrow_up": SPR_ARROW_UP_PATH},
        "GMFolder": {
            "Objects": "folders/Objects.yy",
            "Sprites": "folders/Sprites.yy",
            "Scripts": "folders/Scripts.yy",
        },
    })


def _write(root: Path, relative: str, text: str) -> None:
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")


@pytest.fixture
def project_dir(tmp_path):
    """A small project on disk with a .yyp file, two objects and a sprite."""
    style = FormatStyle.gamemaker()
    _write(tmp_path, OBJ_ARROW_UP_PATH, OBJ_ARROW_UP)
    _write(tmp_path, OBJ_ARROW_PARENT_PATH, serialize(make_object("obj_arrow_parent"), style))
    _write(tmp_path, SPR_ARROW_UP_PATH, serialize(make_sprite("spr_arrow_up"), style))

    project = {
        "resources": [
            {"id": {"name": "obj_arrow_up", "path": OBJ_ARROW_UP_PATH}, "order": 0},
            {"id": {"name": "obj_arrow_parent", "path": OBJ_ARROW_PARENT_PATH}, "order": 1},
            {"id": {"name": "spr_arrow_up", "path": SPR_ARROW_UP_PATH}, "order": 0},
            {"id": {"name": "rm_start", "path": "rooms/rm_start/rm_start.yy"}, "order": 0},
        ],
        "Folders": [
            {"folderPath": "folders/Objects.yy", "order": 1, "resourceVersion": "1.0", "name": "Objects",
             "tags": [], "resourceType": "GMFolder"},
            {"folderPath": "folders/Sprites.yy", "order": 2, "resourceVersion": "1.0", "name": "Sprites",
             "tags": [], "resourceType": "GMFolder"},
        ],
        "resourceVersion": "1.4",
        "name": "arrows",
        "tags": [],
        "resourceType": "GMProject",
    }
    _write(tmp_path, "arrows.yyp", serialize(project, style))
    return tmp_path


@pytest.fixture
def object_tree():
    return make_object


@pytest.fixture
def sprite_tree():
    return make_sprite


@pytest.fixture
def script_tree():
    return make_script
