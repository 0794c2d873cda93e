"""
Tests for loading and validating flow files
"""
import pytest
from stress_flow.engine import FlowLoader, FlowValidator
from stress_flow.exceptions import FlowDefinitionError
from stress_flow.models import Route
from stress_flow.targets import TABLE_ACTIONS, TABLE_FLOW


FLOW_YAML = """
initial_action: create_table
routes:
  - action: create_table
    from: empty
    to: filled
  - action: add_record
    from: filled
    to: filled
  - action: remove_table
    from: filled
    to: empty
"""


class TestFlowLoader:
    """Test FlowLoader"""

    def test_load_from_string(self):
        """Test load from string"""
        definition = FlowLoader.load_from_string(FLOW_YAML, TABLE_ACTIONS)

        assert definition.initial_action == "create_table"
        assert definition.routes["create_table"] == Route("empty", "filled")
        assert definition.routes["remove_table"] == Route("filled", "empty")

    def test_nodes_default(self):
        """Test nodes default"""
        definition = FlowLoader.load_from_string("initial_action: a\nroutes:\n  - action: a\n")

        assert definition.routes["a"] == Route("default", "default")

    def test_unknown_action_refused(self):
        """Test unknown action refused"""
        text = "initial_action: create_table\nroutes:\n  - action: create_table\n  - action: drop_everything\n"

        with pytest.raises(FlowDefinitionError, match="drop_everything"):
            FlowLoader.load_from_string(text, TABLE_ACTIONS)

    @pytest.mark.parametrize("text", [
        "initial_action: [unclosed",
        "- just a list",
        "routes:\n  - action: a\n",
        "initial_action: a\n",
        "initial_action: a\nroutes: []\n",
        "initial_action: a\nroutes:\n  - from: x\n",
        "initial_action: a\nroutes:\n  - action: a\n  - action: a\n",
        "initial_action: b\nroutes:\n  - action: a\n",
    ])
    def test_invalid_flows(self, text):
        """Test invalid flows"""
        with pytest.raises(FlowDefinitionError):
            FlowLoader.load_from_string(text)

    def test_save_and_load(self, tmp_path):
        """Test save and load"""
        path = tmp_path / "flows" / "tables.yaml"

        FlowLoader.save_flow(TABLE_FLOW, path)

        assert FlowLoader.load_from_file(path, TABLE_ACTIONS) == TABLE_FLOW

    def test_missing_file(self, tmp_path):
        """Test missing file"""
        with pytest.raises(FileNotFoundError):
            FlowLoader.load_from_file(tmp_path / "missing.yaml")

    def test_invalid_file_names_path(self, tmp_path):
        """Test invalid file names path"""
        path = tmp_path / "bad.yaml"
        path.write_text("initial_action: a\n")

        with pytest.raises(FlowDefinitionError, match="bad.yaml"):
            FlowLoader.load_from_file(path)


class TestFlowValidator:
    """Test FlowValidator"""

    def test_structure_errors_listed(self):
        """Test structure errors listed"""
        errors = FlowValidator.validate_structure({'routes': [{'from': 'x'}, 'nope']})

        assert "Missing required field: initial_action" in errors
        assert any("missing required field 'action'" in e for e in errors)
        assert any("must be a mapping" in e for e in errors)

    def test_find_dead_ends(self):
        """Test find dead ends"""
        definition = FlowLoader.load_from_string(
            "initial_action: a\nroutes:\n  - action: a\n    from: start\n    to: end\n"
        )

        assert FlowValidator.find_dead_ends(definition) == ["end"]
        assert FlowValidator.find_dead_ends(TABLE_FLOW) == []
