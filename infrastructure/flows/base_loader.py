# infrastructure/flows/base_loader.py
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Union

from domain.flow import NavigationFlow
from infrastructure.flows.rule_codec import FlowLoadError, NavigationRuleCodec


class FlowLoaderBase(ABC):
    """Reads and writes NavigationFlow definitions in one file format."""

    def __init__(self, codec: NavigationRuleCodec | None = None) -> None:
        self._codec = codec or NavigationRuleCodec()

    def load_from_file(self, path: Union[str, Path]) -> NavigationFlow:
        p = Path(path)
        if not p.exists():
            raise FlowLoadError(f"Flow file not found: {path}")

        data = self._load_file(p)

        if data is None:
            raise FlowLoadError(f"Flow file is empty: {path}")

        if not isinstance(data, dict):
            raise FlowLoadError(f"Flow file is invalid: {path}")

        return self.load_from_dict(data)

    def load_from_dict(self, data: Dict[str, Any]) -> NavigationFlow:
        return self._codec.flow_from_dict(data)

    def save_to_file(self, flow: NavigationFlow, path: Union[str, Path]) -> None:
        self._dump_file(self._codec.flow_to_dict(flow), Path(path))

    @abstractmethod
    def _load_file(self, path: Path) -> Any: ...

    @abstractmethod
    def _dump_file(self, data: Dict[str, Any], path: Path) -> None: ...
