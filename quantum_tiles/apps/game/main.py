#!/usr/bin/env python3
"""
Command line entrypoint for quantum tiles.

Loads configuration, starts a level through the game service, and plays it
either from a scripted move list or from an interactive prompt.
"""
import argparse
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .game_service import GameService
from ...pkgs.observability import LEVEL_COMPLETED
from ...pkgs.session_runtime import InitRequest, MoveRequest, ProgressTracker

logger = logging.getLogger(__name__)


def default_config() -> Dict[str, Any]:
    return {
        'global_seed': 0,
        'log_level': 'WARNING',
        'catalog_path': None,
        'recorder': {
            'enabled': True
        },
        'output': {
            'recordings_path': None
        }
    }


def load_config(path: Optional[str]) -> Dict[str, Any]:
    """Load YAML configuration merged over the defaults."""
    config = default_config()
    if not path:
        return config
    try:
        with open(path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {path}")
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config from {path}: {e}")
        return config
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(config.get(key), dict):
            config[key].update(value)
        else:
            config[key] = value
    return config


def parse_moves(text: str) -> List[Tuple[int, int]]:
    """Parse ``"r,c r,c ..."`` into coordinate pairs."""
    moves = []
    for token in text.split():
        row, col = token.split(",")
        moves.append((int(row), int(col)))
    return moves


def render(service: GameService) -> str:
    """Text rendering: outcomes for collapsed tiles, dominant guess otherwise."""
    lines = []
    for r in range(service.grid.rows):
        cells = []
        for tile in service.grid.row_tiles(r):
            if tile.state.collapsed:
                cells.append(f" {tile.state.collapsed_outcome} ")
            else:
                cells.append(f"~{tile.state.dominant_outcome()}{'*' if tile.links else ' '}")
        lines.append(" ".join(cells))
    return "\n".join(lines)


class GameRunner:
    """Drives one level of play on the terminal."""

    def __init__(self, config: Dict[str, Any], out=None):
        self.config = config
        self.out = out or sys.stdout
        self.progress = ProgressTracker()
        self.service = GameService(config, progress=self.progress)
        self.service.events.subscribe(LEVEL_COMPLETED, self._on_completed)

    def _print(self, text: str = ""):
        print(text, file=self.out)

    def _on_completed(self, event):
        self._print(f"Solved in {event.moves} moves ({event.elapsed:.1f}s)!")
        for achievement in self.service.achievements:
            self._print(f"Achievement unlocked: {achievement.name} - {achievement.description}")

    def list_levels(self):
        catalog = self.service.catalog
        for topic_id in sorted(catalog.topics):
            topic = catalog.topics[topic_id]
            label = f"{topic.icon} {topic.name}" if topic.icon else topic.name
            self._print(f"[{topic.id}] {label}")
            for level in catalog.levels_for(topic_id):
                goal = "pattern" if level.goal_pattern else "collapse all"
                self._print(f"    {topic.id}-{level.level_number} {level.name} "
                            f"({level.rows}x{level.cols}, {goal})")

    def start(self, topic_id: int, level_number: int, seed: Optional[int] = None):
        info = self.service.init(InitRequest(topic_id=topic_id, level_number=level_number, seed=seed))
        level = self.service.level
        if level.is_teaching:
            for number, step in enumerate(level.tutorial_steps, 1):
                self._print(f"({number}/{len(level.tutorial_steps)}) {step.title}")
                self._print(f"    {step.text}")
        self._print(f"{info['name']}: {level.goal_description}")
        if level.goal_pattern:
            self._print(f"Goal: {level.goal_pattern}")
        self._print(render(self.service))

    def play_scripted(self, moves: List[Tuple[int, int]]) -> bool:
        for row, col in moves:
            result = self.service.measure(MoveRequest(row=row, col=col))
            self._print(f"({row}, {col}) -> {result.outcome}")
            if result.solved:
                break
        self._print(render(self.service))
        return self.service.completed

    def play_interactive(self) -> bool:
        self._print("Commands: 'r c' measure, 'i r c' interfere, 'restart', 'q' quit")
        while not self.service.completed:
            try:
                line = input("> ").strip()
            except EOFError:
                break
            if line in ("q", "quit"):
                break
            if line == "restart":
                self.service.reset()
                self._print(render(self.service))
                continue
            parts = line.split()
            try:
                if parts and parts[0] == "i":
                    applied = self.service.interfere(int(parts[1]), int(parts[2]))
                    self._print("interference applied" if applied else "no effect")
                else:
                    self.service.measure(MoveRequest(row=int(parts[0]), col=int(parts[1])))
            except (IndexError, ValueError):
                self._print("?")
                continue
            self._print(render(self.service))
            if self.service.is_stuck():
                self._print("Every tile collapsed without matching the goal. Type 'restart'.")
        return self.service.completed

    def save_recordings(self):
        path = self.config.get('output', {}).get('recordings_path')
        if path:
            self.service.export_moves("jsonl", path)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Quantum tiles puzzle")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--list", action="store_true", help="List topics and levels")
    parser.add_argument("--topic", type=int, default=0)
    parser.add_argument("--level", type=int, default=0)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--moves", help="Scripted moves, e.g. '0,0 1,1'")
    args = parser.parse_args(argv)

    runner = GameRunner(load_config(args.config))
    if args.list:
        runner.list_levels()
        return 0

    try:
        runner.start(args.topic, args.level, args.seed)
    except KeyError as e:
        print(e.args[0], file=sys.stderr)
        return 2

    if args.moves:
        solved = runner.play_scripted(parse_moves(args.moves))
    else:
        solved = runner.play_interactive()
    runner.save_recordings()
    return 0 if solved else 1


if __name__ == "__main__":
    sys.exit(main())
