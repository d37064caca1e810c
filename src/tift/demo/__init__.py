"""A small YAML-driven engine used by the CLI and the tests."""

from pathlib import Path

from tift.demo.engine import DemoEngine, GameDefinitionError, create_demo_engine

DEMO_GAME = Path(__file__).with_name("adventure.yaml")

__all__ = ["DEMO_GAME", "DemoEngine", "GameDefinitionError", "create_demo_engine"]
