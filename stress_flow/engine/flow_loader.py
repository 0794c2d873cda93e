"""
Flow Loader - Load, validate and save routing graphs as YAML
"""
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from ..exceptions import FlowDefinitionError
from .action import ActionRegistry
from .flow import FlowBuilder, FlowDefinition


class FlowLoader:
    """Utility class for loading flow definitions from YAML"""

    @staticmethod
    def load_from_file(file_path: Union[str, Path], actions: Optional[ActionRegistry] = None) -> FlowDefinition:
        """Load a flow definition from a YAML file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Flow file not found: {file_path}")

        with open(file_path, 'r') as f:
            config_text = f.read()

        try:
            return FlowLoader.load_from_string(config_text, actions)
        except FlowDefinitionError as e:
            raise FlowDefinitionError(f"Invalid flow file {file_path}: {e}") from e

    @staticmethod
    def load_from_string(config_text: str, actions: Optional[ActionRegistry] = None) -> FlowDefinition:
        """Load a flow definition from a YAML string."""
        try:
            config = yaml.safe_load(config_text)
        except yaml.YAMLError as e:
            raise FlowDefinitionError(f"Invalid YAML syntax: {e}")

        if not isinstance(config, dict):
            raise FlowDefinitionError("Flow definition must be a mapping")

        errors = FlowValidator.validate_structure(config)
        if errors:
            raise FlowDefinitionError("; ".join(errors))

        builder = FlowBuilder().initial_action(config['initial_action'])
        for route in config['routes']:
            builder.route(
                route['action'],
                from_node=str(route.get('from', 'default')),
                to_node=str(route.get('to', 'default'))
            )
        definition = builder.build()

        if actions is not None:
            errors = FlowValidator.validate_actions(definition, actions)
            if errors:
                raise FlowDefinitionError("; ".join(errors))

        return definition

    @staticmethod
    def to_dict(definition: FlowDefinition) -> Dict[str, Any]:
        return {
            'initial_action': definition.initial_action,
            'routes': [
                {'action': action, 'from': route.from_node, 'to': route.to_node}
                for action, route in definition.routes.items()
            ]
        }

    @staticmethod
    def save_flow(definition: FlowDefinition, file_path: Union[str, Path]) -> None:
        """Save a flow definition as YAML."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w') as f:
            yaml.dump(FlowLoader.to_dict(definition), f, default_flow_style=False, sort_keys=False)


class FlowValidator:
    """Validator for flow definitions with detailed error reporting"""

    @staticmethod
    def validate_structure(config_dict: dict) -> List[str]:
        """Validate the structure of a flow configuration dictionary."""
        errors = []

        if 'initial_action' not in config_dict:
            errors.append("Missing required field: initial_action")

        routes = config_dict.get('routes')
        if routes is None:
            errors.append("Missing required field: routes")
            return errors

        if not isinstance(routes, list) or not routes:
            errors.append("routes must be a non-empty list")
            return errors

        seen = set()
        for i, route in enumerate(routes):
            if not isinstance(route, dict):
                errors.append(f"Route {i}: must be a mapping")
                continue
            if 'action' not in route:
                errors.append(f"Route {i}: missing required field 'action'")
                continue
            if route['action'] in seen:
                errors.append(f"Route {i}: duplicate action '{route['action']}'")
            seen.add(route['action'])

        if 'initial_action' in config_dict and config_dict['initial_action'] not in seen:
            errors.append(f"Initial action has no route: {config_dict['initial_action']}")

        return errors

    @staticmethod
    def validate_actions(definition: FlowDefinition, actions: ActionRegistry) -> List[str]:
        """Check that every routed action is registered."""
        return [
            f"Route refers to unknown action: {action}"
            for action in definition.routes
            if action not in actions
        ]

    @staticmethod
    def find_dead_ends(definition: FlowDefinition) -> List[str]:
        """Nodes a walk can reach but never leave."""
        sources = {route.from_node for route in definition.routes.values()}
        return [node for node in definition.nodes if node not in sources]
