import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ValidationError

from ...shared.constants import SwipeHistoryFilter
from ...shared.models import Match

logger = logging.getLogger("capkeo")


class PersistedState(BaseModel):
    """The only client state that survives a restart; bucket lists are always re-fetched."""

    selected_match: Optional[Match] = None
    swipe_history_filter: SwipeHistoryFilter = SwipeHistoryFilter.ALL


class ClientStateStorage:
    """JSON file storage for `PersistedState`. Without a path it only keeps state in memory."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._state: Optional[PersistedState] = None

    def load(self) -> PersistedState:
        if self._state is None:
            self._state = self._read()
        return self._state

    def update(self, **fields) -> PersistedState:
        # Re-read so stores sharing one file do not overwrite each other's fields
        current = self._read() if self.path is not None else self.load()
        state = current.model_copy(update=fields)
        self._state = state
        self._write(state)
        return state

    def _read(self) -> PersistedState:
        if self.path is None or not self.path.exists():
            return PersistedState()
        try:
            return PersistedState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return PersistedState()

    def _write(self, state: PersistedState) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)
        logger.debug(f"Saved client state to {self.path}")
