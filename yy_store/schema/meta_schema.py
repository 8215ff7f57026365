# Copyright 2026 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""JSON Schema describing shape definition files.

Shape files are YAML documents with a top-level ``shapes`` list. They are checked
against this schema before any shape is built from them.
"""

_TYPE_EXPRESSION = {"type": "string", "minLength": 1}

_FIELD = {
    "oneOf": [
        _TYPE_EXPRESSION,
        {
            "type": "object",
            "properties": {
                "type": _TYPE_EXPRESSION,
                "required": {"type": "boolean"},
                "nullable": {"type": "boolean"},
                "resolve": {"type": "boolean"},
                "enum": {
                    "type": "array",
                    "minItems": 1,
                    "items": {"type": ["string", "number", "boolean", "null"]},
                },
                "description": {"type": "string"},
            },
            "required": ["type"],
            "additionalProperties": False,
        },
    ]
}

_SHAPE = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "pattern": r"^[A-Za-z_][A-Za-z0-9_.]*$"},
        "description": {"type": "string"},
        "extends": {"type": "string"},
        "subpath": {"type": "string", "pattern": r"^[a-z0-9_]+$"},
        "path_template": {"type": "string"},
        "manipulable": {"type": "boolean"},
        "open": {"type": "boolean"},
        "discriminator": {"type": "string"},
        "variants": {
            "type": "object",
            "additionalProperties": {"type": "string"},
        },
        "fields": {
            "type": "object",
            "additionalProperties": _FIELD,
        },
    },
    "required": ["name"],
    "additionalProperties": False,
    "dependencies": {"variants": ["discriminator"]},
}

SHAPE_FILE_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "yy_store shape definition file",
    "type": "object",
    "properties": {
        "shapes": {"type": "array", "items": _SHAPE},
    },
    "required": ["shapes"],
    "additionalProperties": False,
}
