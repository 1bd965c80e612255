from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from .errors import PersistenceUnavailable
from .models import TrainingSettings

logger = logging.getLogger(__name__)

RESULTS_KEY = "earTraining_results"
PROGRESS_KEY = "earTraining_progress"
SETTINGS_KEY = "earTraining_settings"


class Store(Protocol):
	def get(self, key: str) -> Optional[Any]: ...

	def set(self, key: str, value: Any) -> None: ...


def data_dir() -> Path:
	env = os.environ.get("EARQUEST_HOME")
	return Path(env) if env else Path.home() / ".earquest"


def default_data_path() -> Path:
	return data_dir() / "data.json"


class JsonFileStore:
	"""All keys live in one JSON document; every set rewrites the whole file."""

	def __init__(self, path: Optional[Path] = None) -> None:
		self.path = Path(path) if path is not None else default_data_path()

	def _load_raw(self) -> Dict[str, Any]:
		try:
			if not self.path.exists():
				return {}
			text = self.path.read_text(encoding="utf-8")
		except OSError as e:
			raise PersistenceUnavailable(f"cannot read {self.path}: {e}") from e
		# A file we cannot parse is left alone; writing it back would drop every other key.
		try:
			data = json.loads(text)
		except ValueError as e:
			raise PersistenceUnavailable(f"unreadable data file {self.path}: {e}") from e
		if not isinstance(data, dict):
			raise PersistenceUnavailable(f"unexpected data in {self.path}: {type(data).__name__}")
		return data

	def _save_raw(self, data: Dict[str, Any]) -> None:
		tmp = self.path.with_suffix(".tmp")
		try:
			self.path.parent.mkdir(parents=True, exist_ok=True)
			tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
			os.replace(tmp, self.path)
		except OSError as e:
			raise PersistenceUnavailable(f"cannot write {self.path}: {e}") from e

	def get(self, key: str) -> Optional[Any]:
		return self._load_raw().get(key)

	def set(self, key: str, value: Any) -> None:
		raw = self._load_raw()
		raw[key] = value
		self._save_raw(raw)


class MemoryStore:
	def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
		self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

	def get(self, key: str) -> Optional[Any]:
		return copy.deepcopy(self._data.get(key))

	def set(self, key: str, value: Any) -> None:
		self._data[key] = copy.deepcopy(value)


class FallbackStore:
	"""Wraps a durable store and drops to memory for the rest of the session once it fails."""

	def __init__(self, primary: Store) -> None:
		self.primary = primary
		self._seen: Dict[str, Any] = {}
		self._memory: Optional[MemoryStore] = None

	@property
	def degraded(self) -> bool:
		return self._memory is not None

	def _degrade(self, err: PersistenceUnavailable) -> MemoryStore:
		logger.warning("Storage unavailable, continuing in memory only: %s", err)
		self._memory = MemoryStore(self._seen)
		return self._memory

	def get(self, key: str) -> Optional[Any]:
		if self._memory is not None:
			return self._memory.get(key)
		try:
			value = self.primary.get(key)
		except PersistenceUnavailable as e:
			return self._degrade(e).get(key)
		if value is not None:
			self._seen[key] = copy.deepcopy(value)
		return value

	def set(self, key: str, value: Any) -> None:
		self._seen[key] = copy.deepcopy(value)
		if self._memory is not None:
			self._memory.set(key, value)
			return
		try:
			self.primary.set(key, value)
		except PersistenceUnavailable as e:
			self._degrade(e)


def open_default_store() -> FallbackStore:
	return FallbackStore(JsonFileStore())


def load_settings(store: Store) -> TrainingSettings:
	obj = store.get(SETTINGS_KEY)
	if isinstance(obj, dict):
		try:
			return TrainingSettings.model_validate(obj)
		except ValidationError as e:
			logger.warning("Saved settings are invalid, using defaults: %s", e)
	return TrainingSettings()


def save_settings(store: Store, s: TrainingSettings) -> None:
	store.set(SETTINGS_KEY, s.to_json())
