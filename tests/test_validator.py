"""Tests for structural validation."""

import copy

from yy_store.parsing.yy_parser import yy_parser
from yy_store.schema.registry import shapes_from_document
from yy_store.validation import validate
from yy_store.validation.violations import Severity, Violation, ViolationKind, fatal, warnings


def _validate(tree, registry, **kwargs):
    shape = registry.shape_for(tree.get("resourceType")) if isinstance(tree, dict) else None
    return validate(tree, shape, registry=registry, **kwargs)


def _kinds_at(violations):
    return [(v.kind, v.location) for v in violations]


def _event(event_type, event_num=0, collision=None):
    return {
        "isDnD": False,
        "eventNum": event_num,
        "eventType": event_type,
        "collisionObjectId": collision,
        "parent": {"name": "obj_a", "path": "objects/obj_a/obj_a.yy"},
        "resourceVersion": "1.0",
        "name": "",
        "tags": [],
        "resourceType": "GMEvent",
    }


class TestValidDescriptors:
    """Test that well-formed descriptors produce no findings."""

    def test_sample_is_clean(self, sample_tree, registry) -> None:
        """Test the IDE-written sample object."""
        assert _validate(sample_tree, registry, file_name="obj_arrow_up") == []

    def test_built_descriptors_are_clean(self, registry, object_tree, sprite_tree, script_tree) -> None:
        """Test one descriptor of each manipulable kind used in the suite."""
        assert _validate(object_tree("obj_a", events=[_event(0), _event(2, 11)]), registry) == []
        assert _validate(sprite_tree("spr_a"), registry) == []
        assert _validate(script_tree("scr_a"), registry) == []


class TestFatalViolations:
    """Test violations that block mutation and saving."""

    def test_missing_resource_type(self, sample_tree, registry) -> None:
        """Test that a missing discriminator is exactly one MissingField."""
        shape = registry.shape_for("GMObject")
        del sample_tree["resourceType"]
        violations = validate(sample_tree, shape, registry=registry)
        assert _kinds_at(violations) == [(ViolationKind.MISSING_FIELD, "resourceType")]
        assert violations[0].is_fatal

    def test_type_mismatch(self, sample_tree, registry) -> None:
        """Test scalar type checks."""
        sample_tree["solid"] = 1
        sample_tree["physicsDensity"] = "0.5"
        violations = _validate(sample_tree, registry)
        assert _kinds_at(violations) == [
            (ViolationKind.TYPE_MISMATCH, "solid"),
            (ViolationKind.TYPE_MISMATCH, "physicsDensity"),
        ]
        assert "found number" in violations[0].message

    def test_bool_is_not_a_number(self, sample_tree, registry) -> None:
        """Test that a boolean never satisfies a number field or its enum."""
        sample_tree["physicsShape"] = True
        assert _kinds_at(_validate(sample_tree, registry)) == [(ViolationKind.TYPE_MISMATCH, "physicsShape")]

    def test_enum_violation(self, sample_tree, registry) -> None:
        """Test a number outside the declared set."""
        sample_tree["physicsShape"] = 7
        violations = _validate(sample_tree, registry)
        assert _kinds_at(violations) == [(ViolationKind.ENUM_VIOLATION, "physicsShape")]
        assert "[0, 1, 2]" in violations[0].message

    def test_enum_accepts_equal_float(self, sample_tree, registry) -> None:
        """Test that 1.0 matches an enum value of 1."""
        sample_tree["physicsShape"] = 1.0
        assert _validate(sample_tree, registry) == []

    def test_enum_is_type_aware(self) -> None:
        """Test that true does not match 1 in an untyped field."""
        (shape,) = shapes_from_document({"shapes": [{"name": "T", "fields": {"flag": {"type": "any", "enum": [1]}}}]})
        assert _kinds_at(validate({"flag": True}, shape)) == [(ViolationKind.ENUM_VIOLATION, "flag")]
        assert validate({"flag": 1}, shape) == []

    def test_enum_with_container_value(self) -> None:
        """Test that an array or object in an untyped enum field is an enum violation."""
        (shape,) = shapes_from_document({"shapes": [{"name": "T", "fields": {"flag": {"type": "any", "enum": [1]}}}]})
        assert _kinds_at(validate({"flag": [1]}, shape)) == [(ViolationKind.ENUM_VIOLATION, "flag")]
        assert _kinds_at(validate({"flag": {"a": 1}}, shape)) == [(ViolationKind.ENUM_VIOLATION, "flag")]

    def test_null_in_non_nullable_field(self, sample_tree, registry) -> None:
        """Test that null is a type mismatch unless the field allows it."""
        sample_tree["visible"] = None
        sample_tree["spriteId"] = None
        violations = _validate(sample_tree, registry)
        assert _kinds_at(violations) == [(ViolationKind.TYPE_MISMATCH, "visible")]
        assert "found null" in violations[0].message

    def test_malformed_reference(self, sample_tree, registry) -> None:
        """Test that a reference must be a {name, path} pair."""
        sample_tree["parentObjectId"] = "obj_arrow_parent"
        sample_tree["spriteId"] = {"name": "spr_arrow_up"}
        violations = _validate(sample_tree, registry)
        assert _kinds_at(violations) == [
            (ViolationKind.TYPE_MISMATCH, "spriteId"),
            (ViolationKind.TYPE_MISMATCH, "parentObjectId"),
        ]

    def test_null_array_item(self, sample_tree, registry) -> None:
        """Test that arrays of records do not accept null members."""
        sample_tree["properties"] = [None]
        assert _kinds_at(_validate(sample_tree, registry)) == [(ViolationKind.TYPE_MISMATCH, "properties[0]")]

    def test_nested_event_variant(self, registry, object_tree) -> None:
        """Test that eventType selects the allowed eventNum values."""
        tree = object_tree("obj_a", events=[_event(0, 3), _event(2, 11), _event(3, 5)])
        violations = _validate(tree, registry)
        assert _kinds_at(violations) == [
            (ViolationKind.ENUM_VIOLATION, "eventList[0].eventNum"),
            (ViolationKind.ENUM_VIOLATION, "eventList[2].eventNum"),
        ]

    def test_collision_event_needs_target(self, registry, object_tree) -> None:
        """Test that a collision event must name the other object."""
        tree = object_tree("obj_a", events=[_event(4)])
        assert _kinds_at(_validate(tree, registry)) == [
            (ViolationKind.TYPE_MISMATCH, "eventList[0].collisionObjectId"),
        ]
        tree = object_tree("obj_a", events=[_event(4, collision={"name": "obj_b", "path": "objects/obj_b/obj_b.yy"})])
        assert _validate(tree, registry) == []

    def test_event_without_variant(self, registry, object_tree) -> None:
        """Test that event types without a variant use the base event shape."""
        tree = object_tree("obj_a", events=[_event(7, 25)])
        assert _validate(tree, registry) == []

    def test_name_mismatch(self, sample_tree, registry) -> None:
        """Test that the name must match the file it was loaded from."""
        violations = _validate(sample_tree, registry, file_name="obj_arrow_down")
        assert _kinds_at(violations) == [(ViolationKind.NAME_MISMATCH, "name")]
        assert violations[0].is_fatal

    def test_root_not_an_object(self, registry) -> None:
        """Test that a descriptor must be an object."""
        violations = validate([1, 2], registry.shape_for("GMObject"), registry=registry)
        assert _kinds_at(violations) == [(ViolationKind.TYPE_MISMATCH, "")]


class TestWarnings:
    """Test findings that never block."""

    def test_unknown_field(self, sample_tree, registry) -> None:
        """Test that undeclared fields are reported as warnings."""
        sample_tree["customThing"] = 1
        sample_tree["eventList"][0]["extra"] = True
        violations = _validate(sample_tree, registry)
        assert _kinds_at(violations) == [
            (ViolationKind.UNKNOWN_FIELD, "eventList[0].extra"),
            (ViolationKind.UNKNOWN_FIELD, "customThing"),
        ]
        assert fatal(violations) == []
        assert all(v.severity == Severity.WARNING for v in violations)

    def test_open_kind_has_no_unknown_fields(self, registry) -> None:
        """Test that open kinds accept fields beyond the declared ones."""
        tree = {
            "conversionMode": 0,
            "compression": 0,
            "resourceVersion": "1.0",
            "name": "snd_click",
            "tags": [],
            "resourceType": "GMSound",
        }
        assert _validate(tree, registry) == []

    def test_unknown_kind(self, registry) -> None:
        """Test that unregistered kinds get base checks and a warning."""
        tree = {"resourceType": "GMRoom", "resourceVersion": "1.0", "layers": [], "tags": []}
        violations = validate(tree, None, registry=registry)
        assert _kinds_at(violations) == [
            (ViolationKind.UNKNOWN_KIND, "resourceType"),
            (ViolationKind.MISSING_FIELD, "name"),
        ]

    def test_duplicate_keys(self, registry) -> None:
        """Test that duplicate keys from the parser become warnings."""
        document = yy_parser.parse_with_source('{"a": 1, "a": 2}')
        violations = validate(document.value, None, duplicate_keys=document.duplicate_keys)
        assert _kinds_at(violations) == [(ViolationKind.DUPLICATE_KEY, "a")]
        assert warnings(violations) == violations


class TestTotality:
    """Test that validation always returns a list."""

    def test_garbage_values(self, sample_tree, registry) -> None:
        """Test that wrong container types are reported, not raised."""
        sample_tree["eventList"] = "none"
        sample_tree["tags"] = [1, None, "ok"]
        sample_tree["physicsShapePoints"] = [{"x": 1}, 3]
        violations = _validate(sample_tree, registry)
        assert (ViolationKind.TYPE_MISMATCH, "eventList") in _kinds_at(violations)
        assert (ViolationKind.TYPE_MISMATCH, "tags[0]") in _kinds_at(violations)
        assert (ViolationKind.TYPE_MISMATCH, "tags[1]") in _kinds_at(violations)
        assert (ViolationKind.MISSING_FIELD, "physicsShapePoints[0].y") in _kinds_at(violations)
        assert (ViolationKind.TYPE_MISMATCH, "physicsShapePoints[1]") in _kinds_at(violations)

    def test_depth_limit(self, sample_tree, registry) -> None:
        """Test that nesting past the limit is reported instead of recursing."""
        violations = _validate(sample_tree, registry, max_depth=1)
        assert (ViolationKind.TYPE_MISMATCH, "eventList[0]") in _kinds_at(violations)
        assert "deeper" in violations[0].message

    def test_tree_not_modified(self, sample_tree, registry) -> None:
        """Test that validation is read-only."""
        sample_tree["solid"] = "no"
        before = copy.deepcopy(sample_tree)
        _validate(sample_tree, registry)
        assert sample_tree == before


class TestViolation:
    """Test the violation record."""

    def test_severity_from_kind(self) -> None:
        """Test that severity follows the kind unless given."""
        assert Violation(ViolationKind.BROKEN_REFERENCE, "a", "m").is_fatal
        assert not Violation(ViolationKind.SELF_REFERENCE, "a", "m").is_fatal

    def test_str_and_dict(self) -> None:
        """Test the printable and serializable forms."""
        violation = Violation(ViolationKind.MISSING_FIELD, "", "no name")
        assert str(violation) == "MissingField at <root>: no name"
        assert violation.to_dict() == {
            "kind": "MissingField",
            "location": "",
            "message": "no name",
            "severity": "fatal",
        }
