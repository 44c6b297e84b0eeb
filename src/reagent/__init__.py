"""reagent: sensor-driven agents on managed thread pools, and line automata built on them."""

from importlib.metadata import version as _version

__version__ = _version("reagent")

from reagent.errors import AgentError, ReagentError, SensorError, SensorInitializationError
from reagent.sensor import Notification, Sensor, SensorListener
from reagent.periodic import ManualSensor, PeriodicSensor
from reagent.agent import Agent
from reagent.cell import ABSENT, CellAgent
from reagent.automaton import LinearAutomaton
from reagent.rules import Life, format_states, life_rule, parse_pattern
# textual NOT auto-imported; opt-in only

__all__ = [
    "ABSENT",
    "Agent",
    "AgentError",
    "CellAgent",
    "Life",
    "LinearAutomaton",
    "ManualSensor",
    "Notification",
    "PeriodicSensor",
    "ReagentError",
    "Sensor",
    "SensorError",
    "SensorInitializationError",
    "SensorListener",
    "format_states",
    "life_rule",
    "parse_pattern",
]
