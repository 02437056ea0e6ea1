"""Tests for reading and writing blueprint documents."""

import json

import pytest

from blueprintc.codegen import generate_script
from blueprintc.errors import SerializationError, VersionError
from blueprintc.graph import GraphKind
from blueprintc.serialization import CURRENT_VERSION, dumps, encode, load, loads, save
from blueprintc.types import FloatValue, PinType, StringValue, Vec3Value


@pytest.fixture
def rich_graph(hello_graph):
    """Fixture providing the hello graph with overrides, metadata and a variable."""
    hello_graph.set_override(1, "message", StringValue("Hi there"))
    hello_graph.nodes[0].metadata["position"] = [120.0, 40.0]
    hello_graph.set_variable("speed", PinType.FLOAT, FloatValue(2.5), "Units per second")
    vec = hello_graph.add_node("math/make_vec3")
    hello_graph.set_override(vec, "y", FloatValue(1.0))
    return hello_graph


class TestEncode:
    """Tests for the document layout."""

    def test_layout(self, hello_graph):
        """Documents carry the version and the graph fields."""
        # Act
        data = encode(hello_graph)

        # Assert
        assert data["version"] == CURRENT_VERSION
        graph = data["graph"]
        assert graph["name"] == "Player"
        assert graph["kind"] == "script"
        assert graph["next_id"] == 2
        assert [n["type"] for n in graph["nodes"]] == ["event/on_ready", "utility/print"]
        assert graph["connections"] == [
            {"from": {"node": 0, "pin": "exec"}, "to": {"node": 1, "pin": "exec"}}
        ]

    def test_overrides_are_tagged(self, rich_graph):
        """Overrides encode with their type label."""
        data = encode(rich_graph)
        assert data["graph"]["nodes"][1]["overrides"] == {
            "message": {"type": "String", "value": "Hi there"}
        }

    def test_dumps_is_json(self, rich_graph):
        """dumps produces parseable JSON."""
        assert json.loads(dumps(rich_graph))["version"] == CURRENT_VERSION


class TestRoundTrip:
    """Tests for save/load fidelity."""

    def test_loads_dumps(self, rich_graph, registry):
        """A graph survives a text round trip unchanged."""
        assert loads(dumps(rich_graph), registry) == rich_graph

    def test_save_load(self, rich_graph, registry, tmp_path):
        """A graph survives a file round trip; no temp files are left behind."""
        # Arrange
        path = tmp_path / "scripts" / "player.blueprint"

        # Act
        save(rich_graph, path)
        loaded = load(path, registry)

        # Assert
        assert loaded == rich_graph
        assert [p.name for p in path.parent.iterdir()] == ["player.blueprint"]

    def test_next_id_preserved(self, hello_graph, registry):
        """Removed ids stay retired after a round trip."""
        # Arrange
        extra = hello_graph.add_node("math/add")
        hello_graph.remove_node(extra)

        # Act
        loaded = loads(dumps(hello_graph), registry)

        # Assert
        assert loaded.add_node("math/add") == extra + 1

    def test_mismatched_override_kept(self, material_graph, registry):
        """Stale overrides are stored verbatim."""
        vec = material_graph.add_node("shader/make_vec3")
        material_graph.nodes[vec].overrides["x"] = Vec3Value(1.0, 2.0, 3.0)

        loaded = loads(dumps(material_graph), registry)

        assert loaded.kind is GraphKind.MATERIAL
        assert loaded.nodes[vec].overrides["x"] == Vec3Value(1.0, 2.0, 3.0)

    def test_unknown_node_type_loads(self, hello_graph, registry):
        """Unknown kinds load and are reported by the generator."""
        # Arrange
        data = encode(hello_graph)
        data["graph"]["nodes"].append({"id": 7, "type": "future/teleport"})

        # Act
        graph = loads(json.dumps(data), registry)
        result = generate_script(graph)

        # Assert
        assert graph.nodes[7].type_id == "future/teleport"
        assert graph.next_id == 8
        assert not result.ok
        assert result.errors[0].node_id == 7

    def test_older_version_loads(self, hello_graph, registry):
        """Documents from older format versions are accepted."""
        data = encode(hello_graph)
        data["version"] = 0
        assert loads(json.dumps(data), registry) == hello_graph


class TestMalformedDocuments:
    """Tests for rejected documents."""

    def test_newer_version(self, hello_graph, registry):
        """Newer documents raise VersionError."""
        data = encode(hello_graph)
        data["version"] = CURRENT_VERSION + 1
        with pytest.raises(VersionError, match="newer"):
            loads(json.dumps(data), registry)

    def test_invalid_json(self, registry):
        """Unparseable text raises SerializationError."""
        with pytest.raises(SerializationError, match="Invalid JSON"):
            loads("{not json", registry)

    @pytest.mark.parametrize("field", ["name", "kind", "nodes", "connections", "next_id"])
    def test_missing_graph_field(self, hello_graph, registry, field):
        """Every graph field is required."""
        data = encode(hello_graph)
        del data["graph"][field]
        with pytest.raises(SerializationError, match=field):
            loads(json.dumps(data), registry)

    def test_bool_is_not_an_id(self, hello_graph, registry):
        """A boolean node id is rejected."""
        data = encode(hello_graph)
        data["graph"]["nodes"][0]["id"] = True
        with pytest.raises(SerializationError, match="wrong type"):
            loads(json.dumps(data), registry)

    def test_duplicate_node_id(self, hello_graph, registry):
        """Two nodes with one id are rejected."""
        data = encode(hello_graph)
        data["graph"]["nodes"][1]["id"] = 0
        with pytest.raises(SerializationError, match="Duplicate"):
            loads(json.dumps(data), registry)

    def test_unknown_kind(self, hello_graph, registry):
        """Unknown graph kinds are rejected."""
        data = encode(hello_graph)
        data["graph"]["kind"] = "animation"
        with pytest.raises(SerializationError, match="Unknown graph kind"):
            loads(json.dumps(data), registry)

    def test_variable_default_type(self, rich_graph, registry):
        """A variable default must match its declared type."""
        data = encode(rich_graph)
        data["graph"]["variables"][0]["default"] = {"type": "String", "value": "fast"}
        with pytest.raises(SerializationError, match="expected Float"):
            loads(json.dumps(data), registry)

    def test_missing_file(self, registry, tmp_path):
        """Unreadable paths raise SerializationError."""
        with pytest.raises(SerializationError, match="Cannot read"):
            load(tmp_path / "missing.blueprint", registry)

    def test_unwritable_path(self, hello_graph, tmp_path):
        """Write failures raise SerializationError."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(SerializationError, match="Cannot write"):
            save(hello_graph, blocker / "child.blueprint")

    def test_dangling_connection(self, hello_graph, registry):
        """A connection to a node that is not in the document is rejected."""
        # Arrange
        data = encode(hello_graph)
        data["graph"]["connections"][0]["to"]["node"] = 42

        # Act / Assert
        with pytest.raises(SerializationError, match="missing node 42") as info:
            loads(json.dumps(data), registry)
        assert info.value.node_id == 42

    def test_unknown_pin_on_known_node(self, hello_graph, registry):
        """Pins of registered node kinds must exist."""
        # Arrange
        data = encode(hello_graph)
        data["graph"]["connections"][0]["to"]["pin"] = "teleport"

        # Act / Assert
        with pytest.raises(SerializationError, match="no input pin 'teleport'"):
            loads(json.dumps(data), registry)

    def test_pin_direction_checked(self, hello_graph, registry):
        """An input pin named as a connection source is rejected."""
        # Arrange
        data = encode(hello_graph)
        data["graph"]["connections"][0]["from"] = {"node": 1, "pin": "message"}
        data["graph"]["connections"][0]["to"] = {"node": 1, "pin": "exec"}

        # Act / Assert
        with pytest.raises(SerializationError, match="no output pin 'message'"):
            loads(json.dumps(data), registry)

    def test_duplicate_input_writer(self, registry):
        """Two connections into one input are rejected."""
        # Arrange
        data = {
            "version": CURRENT_VERSION,
            "graph": {
                "name": "Twice",
                "kind": "script",
                "next_id": 3,
                "nodes": [
                    {"id": 0, "type": "math/add"},
                    {"id": 1, "type": "math/add"},
                    {"id": 2, "type": "math/add"},
                ],
                "connections": [
                    {"from": {"node": 0, "pin": "result"}, "to": {"node": 2, "pin": "a"}},
                    {"from": {"node": 1, "pin": "result"}, "to": {"node": 2, "pin": "a"}},
                ],
                "variables": [],
            },
        }

        # Act / Assert
        with pytest.raises(SerializationError, match="more than one incoming"):
            loads(json.dumps(data), registry)

    def test_deeply_nested_json(self, registry):
        """Pathologically nested text fails as a document error."""
        with pytest.raises(SerializationError, match="Invalid JSON"):
            loads("[" * 200000 + "]" * 200000, registry)

    def test_unknown_node_keeps_pins(self, hello_graph, registry):
        """Connections to unknown node kinds are not pin-checked."""
        # Arrange
        data = encode(hello_graph)
        data["graph"]["nodes"].append({"id": 7, "type": "future/teleport"})
        data["graph"]["connections"].append(
            {"from": {"node": 1, "pin": "then"}, "to": {"node": 7, "pin": "exec"}}
        )

        # Act
        graph = loads(json.dumps(data), registry)

        # Assert
        assert len(graph.connections) == 2
