# -*- coding: utf-8 -*-
"""
Maintenance Data Repositories

The calculators take plain sequences of records and never reach into a
store. Repositories sit between the persistence layer and the service
facade and hand those sequences over.

Implementations:
    - InMemoryMaintenanceRepository: records held in lists, for tests and
      embedding.
    - FileMaintenanceRepository: a JSON or YAML snapshot using the
      application's storage keys (``equipments``, ``breakdowns``,
      ``maintenanceTasks``, ``thermalReadings``). Records may use either
      camelCase or snake_case field names.

Example:
    >>> from gmao.reliability_engine.repository import FileMaintenanceRepository
    >>> repo = FileMaintenanceRepository("snapshot.json")
    >>> len(repo.get_breakdowns(equipment_id="eq-001"))
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from gmao.exceptions import DataAccessError, InvalidSchema
from gmao.reliability_engine.models import (
    Breakdown,
    Equipment,
    MaintenanceTask,
    ThermalReading,
)

logger = logging.getLogger(__name__)

__all__ = [
    "MaintenanceDataRepository",
    "InMemoryMaintenanceRepository",
    "FileMaintenanceRepository",
    "STORAGE_KEYS",
]

#: Snapshot keys, mapped to the record model of each collection.
STORAGE_KEYS: Dict[str, Type[BaseModel]] = {
    "equipments": Equipment,
    "breakdowns": Breakdown,
    "maintenanceTasks": MaintenanceTask,
    "thermalReadings": ThermalReading,
}

_R = TypeVar("_R", Breakdown, MaintenanceTask, ThermalReading)


def _filter_equipment(records: Iterable[_R], equipment_id: Optional[str]) -> List[_R]:
    if equipment_id is None:
        return list(records)
    return [r for r in records if r.equipment_id == equipment_id]


class MaintenanceDataRepository(ABC):
    """Read access to the four record collections of the application."""

    @abstractmethod
    def get_equipments(self) -> List[Equipment]:
        """Return every registered equipment unit."""

    @abstractmethod
    def get_breakdowns(self, equipment_id: Optional[str] = None) -> List[Breakdown]:
        """Return breakdowns, optionally for one equipment unit."""

    @abstractmethod
    def get_maintenance_tasks(
        self, equipment_id: Optional[str] = None,
    ) -> List[MaintenanceTask]:
        """Return maintenance tasks, optionally for one equipment unit."""

    @abstractmethod
    def get_thermal_readings(
        self, equipment_id: Optional[str] = None,
    ) -> List[ThermalReading]:
        """Return thermal readings, optionally for one equipment unit."""

    def get_equipment(self, equipment_id: str) -> Optional[Equipment]:
        """Return one equipment unit, or None when unknown."""
        for equipment in self.get_equipments():
            if equipment.id == equipment_id:
                return equipment
        return None


class InMemoryMaintenanceRepository(MaintenanceDataRepository):
    """Repository over records supplied at construction."""

    def __init__(
        self,
        equipments: Optional[Iterable[Equipment]] = None,
        breakdowns: Optional[Iterable[Breakdown]] = None,
        maintenance_tasks: Optional[Iterable[MaintenanceTask]] = None,
        thermal_readings: Optional[Iterable[ThermalReading]] = None,
    ) -> None:
        self._equipments = list(equipments or [])
        self._breakdowns = list(breakdowns or [])
        self._maintenance_tasks = list(maintenance_tasks or [])
        self._thermal_readings = list(thermal_readings or [])

    def get_equipments(self) -> List[Equipment]:
        return list(self._equipments)

    def get_breakdowns(self, equipment_id: Optional[str] = None) -> List[Breakdown]:
        return _filter_equipment(self._breakdowns, equipment_id)

    def get_maintenance_tasks(
        self, equipment_id: Optional[str] = None,
    ) -> List[MaintenanceTask]:
        return _filter_equipment(self._maintenance_tasks, equipment_id)

    def get_thermal_readings(
        self, equipment_id: Optional[str] = None,
    ) -> List[ThermalReading]:
        return _filter_equipment(self._thermal_readings, equipment_id)

    def add_maintenance_tasks(self, tasks: Iterable[MaintenanceTask]) -> None:
        """Append tasks, e.g. generated recurring occurrences."""
        self._maintenance_tasks.extend(tasks)


class FileMaintenanceRepository(InMemoryMaintenanceRepository):
    """Repository loaded once from a JSON or YAML snapshot file.

    Missing collections are treated as empty.

    Raises:
        DataAccessError: If the file cannot be read or parsed, or its
            extension is not .json, .yaml or .yml.
        InvalidSchema: If the document is not a mapping, a collection is
            not a list, or a record fails validation.
    """

    SUPPORTED_FORMATS = (".json", ".yaml", ".yml")

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        document = self._read_document()
        collections = {
            key: self._parse_collection(key, model, document.get(key) or [])
            for key, model in STORAGE_KEYS.items()
        }
        super().__init__(
            equipments=collections["equipments"],
            breakdowns=collections["breakdowns"],
            maintenance_tasks=collections["maintenanceTasks"],
            thermal_readings=collections["thermalReadings"],
        )
        logger.info(
            "Loaded maintenance snapshot %s: %s",
            self.path,
            ", ".join(f"{k}={len(v)}" for k, v in collections.items()),
        )

    def _read_document(self) -> Dict[str, Any]:
        suffix = self.path.suffix.lower()
        if suffix not in self.SUPPORTED_FORMATS:
            raise DataAccessError(
                f"Unsupported snapshot format: {suffix or '(none)'}",
                data_source=str(self.path),
                operation="read",
            )

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                if suffix == ".json":
                    document = json.load(f)
                else:
                    document = yaml.safe_load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error("Failed to load snapshot %s: %s", self.path, e)
            raise DataAccessError(
                f"Failed to load snapshot: {self.path}",
                data_source=str(self.path),
                operation="parse" if not isinstance(e, OSError) else "read",
                cause=e,
            ) from e

        if document is None:
            return {}
        if not isinstance(document, dict):
            raise InvalidSchema(
                "Snapshot root must be a mapping of collections",
                context={"path": str(self.path)},
            )
        return document

    def _parse_collection(
        self,
        key: str,
        model: Type[BaseModel],
        raw: Any,
    ) -> List[Any]:
        if not isinstance(raw, list):
            raise InvalidSchema(
                f"Collection '{key}' must be a list",
                context={"path": str(self.path)},
                collection=key,
            )

        records = []
        for index, item in enumerate(raw):
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                raise InvalidSchema(
                    f"Invalid record #{index} in '{key}'",
                    context={"path": str(self.path), "index": index},
                    collection=key,
                    schema_errors=[
                        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                        for err in e.errors()
                    ],
                ) from e
        return records
