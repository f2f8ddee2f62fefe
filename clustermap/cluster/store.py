"""Workspace-backed plan storage."""

from pathlib import Path
from typing import Union

from clustermap.cluster.protocol import PlanStore
from clustermap.core.exceptions import PersistenceError
from clustermap.logger import init_logger

logger = init_logger(__name__)


class FilePlanStore(PlanStore):
    """Reads and writes plan files relative to a workspace directory."""

    def __init__(self, workspace: Union[str, Path]) -> None:
        self._workspace = Path(workspace)

    @property
    def workspace(self) -> Path:
        return self._workspace

    def path_for(self, name: str) -> Path:
        return self._workspace / name

    def write_text(self, name: str, text: str) -> None:
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        logger.debug("Wrote %s", path)

    def read_text(self, name: str) -> str:
        path = self.path_for(name)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Couldn't load properties file: %s", path)
            raise PersistenceError([f"Couldn't load properties file: {path}"]) from e
