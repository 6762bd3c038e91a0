# infrastructure/flows/yaml_loader.py
"""
YAMLフローファイルからNavigationFlowを生成
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from infrastructure.flows.base_loader import FlowLoaderBase
from infrastructure.flows.rule_codec import FlowLoadError


class YamlFlowLoader(FlowLoaderBase):
    def _load_file(self, path: Path) -> Any:
        with path.open("r", encoding="utf-8") as f:
            try:
                return yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise FlowLoadError(f"Flow file is not valid YAML: {path}: {e}")

    def _dump_file(self, data: Dict[str, Any], path: Path) -> None:
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)
