from __future__ import annotations

import sys
import threading
from typing import Dict, List, Mapping, Sequence, TextIO


class OutputCallback:
    """
    Event sink for a discussion run. Every hook is a no-op here; subclass
    and override what you need.

    Schedulers call `on_start`/`on_complete` around each agent invocation
    and the round hooks after each round; agents call `on_content`. In
    parallel mode hooks can arrive from worker threads, so implementations
    own whatever locking they need.
    """

    def on_start(self, agent_name: str) -> None:
        pass

    def on_content(self, agent_name: str, content: str) -> None:
        pass

    def on_complete(self, agent_name: str) -> None:
        pass

    def on_round_complete(self, round_index: int, results: Mapping[str, str]) -> None:
        pass

    def on_all_complete(self, transcript: Sequence[Mapping[str, str]]) -> None:
        pass


class ConsoleCallback(OutputCallback):
    """
    Prints a labelled live stream of the discussion.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._out = stream or sys.stdout
        self._lock = threading.Lock()
        self._needs_label: Dict[str, bool] = {}

    def on_start(self, agent_name: str) -> None:
        with self._lock:
            self._needs_label[agent_name] = True
            self._out.write(f"\n[{agent_name} is answering]\n")
            self._out.flush()

    def on_content(self, agent_name: str, content: str) -> None:
        with self._lock:
            if self._needs_label.get(agent_name):
                self._out.write(f"[{agent_name}]: ")
                self._needs_label[agent_name] = False
            self._out.write(content)
            self._out.flush()

    def on_complete(self, agent_name: str) -> None:
        with self._lock:
            self._out.write(f"\n[{agent_name} finished]\n")
            self._out.flush()

    def on_round_complete(self, round_index: int, results: Mapping[str, str]) -> None:
        with self._lock:
            self._out.write(f"\n=== Round {round_index + 1} complete ===\n")
            self._out.flush()


class RecordingCallback(OutputCallback):
    """
    Keeps every event in order; handy for UIs that render after the fact.

    `events` holds tuples like ("start", name) or ("round", index).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: List[tuple] = []
        self.contents: Dict[str, List[str]] = {}

    def on_start(self, agent_name: str) -> None:
        with self._lock:
            self.events.append(("start", agent_name))

    def on_content(self, agent_name: str, content: str) -> None:
        with self._lock:
            self.events.append(("content", agent_name))
            self.contents.setdefault(agent_name, []).append(content)

    def on_complete(self, agent_name: str) -> None:
        with self._lock:
            self.events.append(("complete", agent_name))

    def on_round_complete(self, round_index: int, results: Mapping[str, str]) -> None:
        with self._lock:
            self.events.append(("round", round_index))

    def on_all_complete(self, transcript: Sequence[Mapping[str, str]]) -> None:
        with self._lock:
            self.events.append(("all", len(transcript)))
