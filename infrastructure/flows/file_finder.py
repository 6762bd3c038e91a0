"""Find flow definition files by ID."""
from pathlib import Path
from typing import Optional


class FlowFileFinder:
    """Search flow files under the given base directory."""

    PRIORITY = [".json", ".yaml", ".yml"]

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def find_by_id(self, flow_id: str) -> Optional[Path]:
        """
        Find a flow file by flow ID.

        Args:
            flow_id: Flow ID (e.g., "pain-survey")

        Returns:
            The Path if found, otherwise None.
        """
        if not self.base_dir.is_dir():
            return None

        candidates: list[Path] = []
        # .json wins over YAML variants for the same flow_id
        for ext in self.PRIORITY:
            for file_path in self.base_dir.rglob(f"{flow_id}{ext}"):
                if file_path.is_file():
                    candidates.append(file_path)

        if not candidates:
            return None

        candidates.sort(key=lambda path: (self.PRIORITY.index(path.suffix), str(path)))
        return candidates[0]
