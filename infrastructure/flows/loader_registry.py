# infrastructure/flows/loader_registry.py
from __future__ import annotations

from pathlib import Path
from typing import Dict

from infrastructure.flows.base_loader import FlowLoaderBase
from infrastructure.flows.json_loader import JsonFlowLoader
from infrastructure.flows.rule_codec import FlowLoadError
from infrastructure.flows.yaml_loader import YamlFlowLoader


class FlowLoaderRegistry:
    def __init__(self) -> None:
        self._loaders: Dict[str, FlowLoaderBase] = {
            ".yaml": YamlFlowLoader(),
            ".yml": YamlFlowLoader(),
            ".json": JsonFlowLoader(),
        }

    def get_loader(self, path: Path) -> FlowLoaderBase:
        ext = path.suffix.lower()
        loader = self._loaders.get(ext)
        if loader is None:
            raise FlowLoadError(f"Unsupported flow format: {ext}")
        return loader
