# infrastructure/flows/json_loader.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from infrastructure.flows.base_loader import FlowLoaderBase
from infrastructure.flows.rule_codec import FlowLoadError


class JsonFlowLoader(FlowLoaderBase):
    def _load_file(self, path: Path) -> Any:
        with path.open("r", encoding="utf-8") as handle:
            try:
                return json.load(handle)
            except json.JSONDecodeError as e:
                raise FlowLoadError(f"Flow file is not valid JSON: {path}: {e}")

    def _dump_file(self, data: Dict[str, Any], path: Path) -> None:
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2)
