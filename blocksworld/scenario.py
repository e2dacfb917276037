"""
Scenario loading for JSON-defined planning problems.

A scenario bundles a world snapshot, the goal, optional planner options and
optional expectations used by the regression runner.

Scenario file structure:
```json
{
  "name": "Reverse tower",
  "description": "...",
  "stacks": [["A", "B"], ["C"]],
  "goal": ["B", "A", "C", "Table"],
  "options": {"maxIterations": 100},
  "expected": {"goalAchieved": true, "maxMoves": 4}
}
```
Use ``goal_chains`` instead of ``goal`` for independent towers.

Usage:
    loader = ScenarioLoader()
    scenario = loader.load("reverse_tower")
    result = scenario.plan()
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field

from .config import Config
from .planner import BlocksWorldPlanner
from .schemas import PayloadModel, PlanResult


class ScenarioExpectation(PayloadModel):
    """What a regression run should observe."""

    goal_achieved: bool = True
    max_moves: Optional[int] = None
    max_iterations: Optional[int] = None
    min_parallel_cycles: Optional[int] = None
    conflicts_by_type: Optional[Dict[str, int]] = None


class Scenario(PayloadModel):
    name: str
    description: str = ""
    stacks: List[List[str]]
    goal: Optional[List[Any]] = None
    goal_chains: Optional[List[List[str]]] = None
    options: Dict[str, Any] = Field(default_factory=dict)
    expected: ScenarioExpectation = Field(default_factory=ScenarioExpectation)

    def planner(self, **kwargs: Any) -> BlocksWorldPlanner:
        return BlocksWorldPlanner(
            self.stacks,
            goal=self.goal,
            goal_chains=self.goal_chains,
            options=self.options,
            **kwargs,
        )

    def plan(self) -> PlanResult:
        return self.planner().plan()

    def check(self, result: PlanResult) -> List[str]:
        """Return a list of expectation failures (empty when the run is as expected)."""
        failures = []
        expected = self.expected
        moves = len(result.flat_moves())

        if result.goal_achieved != expected.goal_achieved:
            failures.append(f"goal_achieved={result.goal_achieved}, expected {expected.goal_achieved}")
        if expected.max_moves is not None and moves > expected.max_moves:
            failures.append(f"{moves} moves exceeds maximum {expected.max_moves}")
        if expected.max_iterations is not None and result.iterations > expected.max_iterations:
            failures.append(f"{result.iterations} cycles exceeds maximum {expected.max_iterations}")
        if expected.min_parallel_cycles is not None:
            parallel = result.statistics.get("parallel_cycles", 0)
            if parallel < expected.min_parallel_cycles:
                failures.append(f"{parallel} parallel cycles, expected at least {expected.min_parallel_cycles}")
        if expected.conflicts_by_type is not None:
            observed = result.statistics.get("conflicts_by_type", {})
            if observed != expected.conflicts_by_type:
                failures.append(f"conflicts {observed}, expected {expected.conflicts_by_type}")
        return failures


class ScenarioLoader:
    """Load planning scenarios from JSON files.

    Directory structure:
    - Default: {PROJECT_ROOT}/examples/scenarios/
    - Override via constructor: ScenarioLoader(Path("/custom/scenarios"))
    - Scenario files: {scenario_name}.json

    Raises ValueError when a file lacks ``name``/``stacks`` or defines both or
    neither of ``goal`` and ``goal_chains``.
    """

    def __init__(self, scenarios_dir: Optional[Path] = None):
        self.scenarios_dir = scenarios_dir or Config.SCENARIOS_DIR

    def available(self) -> List[str]:
        if not self.scenarios_dir.exists():
            return []
        return sorted(path.stem for path in self.scenarios_dir.glob("*.json"))

    def load(self, scenario_name: str) -> Scenario:
        scenario_path = self.scenarios_dir / f"{scenario_name}.json"

        if not scenario_path.exists():
            raise FileNotFoundError(
                f"Scenario '{scenario_name}' not found at {scenario_path}"
            )

        data = json.loads(scenario_path.read_text())
        self._validate_scenario(data)
        return Scenario.model_validate(data)

    def load_all(self) -> List[Scenario]:
        return [self.load(name) for name in self.available()]

    def _validate_scenario(self, data: Dict) -> None:
        required = ["name", "stacks"]
        missing = [field for field in required if field not in data]

        if missing:
            raise ValueError(f"Scenario missing required fields: {missing}")

        has_goal = "goal" in data
        has_chains = "goal_chains" in data or "goalChains" in data
        if has_goal == has_chains:
            raise ValueError("Scenario must define exactly one of 'goal' or 'goal_chains'")
