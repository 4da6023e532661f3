# -*- coding: utf-8 -*-
"""
Provenance Tracking for the Reliability Engine

Keeps a tamper-evident, in-memory audit log of every calculation served by
the reliability engine service. Each entry stores SHA-256 hashes of the
operation's inputs and outputs and a chain hash linking it to the previous
entry, starting from a configurable genesis value.

Hashing is deterministic:
    - dictionary keys are sorted
    - floats are rounded to 10 decimal places, NaN/Inf replaced by markers
    - pydantic models are hashed through their JSON-mode dump
    - datetimes are hashed through their ISO representation

Example:
    >>> from gmao.reliability_engine.provenance import ProvenanceTracker
    >>> tracker = ProvenanceTracker()
    >>> chain_hash = tracker.record_operation(
    ...     "equipment", "eq-001", "equipment_metrics",
    ...     input_data={"period": "2025-01"}, output_data={"mtbf": 356.0},
    ... )
    >>> valid, chain = tracker.verify_chain("equipment", "eq-001")
    >>> assert valid is True
"""

from __future__ import annotations

import hashlib
import json
import logging
import math
import threading
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def _normalize_value(value: Any) -> Any:
    """Normalize a value for deterministic serialization.

    Args:
        value: Any Python value, including pydantic models and
            nested containers of them.

    Returns:
        JSON-compatible value with stable float representation.
    """
    if isinstance(value, BaseModel):
        return _normalize_value(value.model_dump(mode="json"))
    if isinstance(value, float):
        if math.isnan(value):
            return "__NaN__"
        if math.isinf(value):
            return "__Inf__" if value > 0 else "__-Inf__"
        return round(value, 10)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _normalize_value(v) for k, v in sorted(value.items())}
    if isinstance(value, (list, tuple)):
        return [_normalize_value(v) for v in value]
    return value


@dataclass
class ProvenanceEntry:
    """A single link of the provenance chain.

    Attributes:
        entry_id: Unique identifier for this entry.
        entity_type: Kind of entity the operation concerned (equipment,
            fleet, heat_exchanger, maintenance).
        entity_id: Identifier of that entity.
        operation: Service operation that produced the entry.
        input_hash: SHA-256 hash of the operation input.
        output_hash: SHA-256 hash of the operation output.
        timestamp: ISO-formatted UTC timestamp.
        parent_hash: Chain hash of the previous entry.
        chain_hash: SHA-256 hash linking this entry to ``parent_hash``.
        metadata: Free-form audit context.
    """

    entry_id: str
    entity_type: str
    entity_id: str
    operation: str
    input_hash: str
    output_hash: str
    timestamp: str
    parent_hash: str
    chain_hash: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProvenanceTracker:
    """SHA-256 chain-hashed audit log, indexed per entity.

    Attributes:
        genesis_hash: Parent hash of the first entry.
        _entries: Every entry in insertion order.
        _by_entity: Entries grouped by ``"{entity_type}:{entity_id}"``.
        _last_chain_hash: Head of the chain.
        _lock: Guards all mutable state.
    """

    def __init__(self, genesis: Optional[str] = None) -> None:
        """Initialize the tracker.

        Args:
            genesis: Seed string for the genesis hash. Defaults to the
                configured ``genesis_hash``.
        """
        if genesis is None:
            from gmao.reliability_engine.config import get_config
            genesis = get_config().genesis_hash
        self.genesis_hash = hashlib.sha256(genesis.encode("utf-8")).hexdigest()
        self._entries: List[ProvenanceEntry] = []
        self._by_entity: Dict[str, List[ProvenanceEntry]] = {}
        self._last_chain_hash = self.genesis_hash
        self._lock = threading.Lock()
        logger.debug("ProvenanceTracker initialized")

    # ------------------------------------------------------------------
    # Hashing
    # ------------------------------------------------------------------

    @staticmethod
    def compute_hash(data: Any) -> str:
        """Deterministic SHA-256 hash of arbitrary data.

        Args:
            data: Dict, list, pydantic model, scalar or nesting thereof.

        Returns:
            Hex-encoded SHA-256 digest.
        """
        serialized = json.dumps(_normalize_value(data), sort_keys=True, default=str)
        return hashlib.sha256(serialized.encode("utf-8")).hexdigest()

    @staticmethod
    def _compute_chain_hash(
        parent_hash: str,
        input_hash: str,
        output_hash: str,
        operation: str,
        timestamp: str,
    ) -> str:
        combined = json.dumps(
            {
                "previous": parent_hash,
                "input": input_hash,
                "output": output_hash,
                "operation": operation,
                "timestamp": timestamp,
            },
            sort_keys=True,
        )
        return hashlib.sha256(combined.encode("utf-8")).hexdigest()

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def add_entry(
        self,
        entity_type: str,
        entity_id: str,
        operation: str,
        input_hash: str,
        output_hash: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ProvenanceEntry:
        """Append an entry built from precomputed hashes.

        Returns:
            The created ProvenanceEntry.
        """
        timestamp = _utcnow().isoformat()
        store_key = f"{entity_type}:{entity_id}"

        with self._lock:
            parent_hash = self._last_chain_hash
            entry = ProvenanceEntry(
                entry_id=str(uuid4()),
                entity_type=entity_type,
                entity_id=entity_id,
                operation=operation,
                input_hash=input_hash,
                output_hash=output_hash,
                timestamp=timestamp,
                parent_hash=parent_hash,
                chain_hash=self._compute_chain_hash(
                    parent_hash, input_hash, output_hash, operation, timestamp,
                ),
                metadata=dict(metadata or {}),
            )
            self._entries.append(entry)
            self._by_entity.setdefault(store_key, []).append(entry)
            self._last_chain_hash = entry.chain_hash

        logger.debug(
            "Recorded provenance: %s op=%s chain=%s",
            store_key, operation, entry.chain_hash[:16],
        )
        return entry

    def record_operation(
        self,
        entity_type: str,
        entity_id: str,
        operation: str,
        input_data: Any = None,
        output_data: Any = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Hash an operation's input and output and append it to the chain.

        Returns:
            Chain hash of the new entry.
        """
        entry = self.add_entry(
            entity_type,
            entity_id,
            operation,
            self.compute_hash(input_data),
            self.compute_hash(output_data),
            metadata,
        )
        return entry.chain_hash

    record = record_operation

    # ------------------------------------------------------------------
    # Verification and retrieval
    # ------------------------------------------------------------------

    def _select(
        self,
        entity_type: Optional[str],
        entity_id: Optional[str],
    ) -> List[ProvenanceEntry]:
        with self._lock:
            if entity_type and entity_id:
                return list(self._by_entity.get(f"{entity_type}:{entity_id}", []))
            return list(self._entries)

    def verify_chain(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> Tuple[bool, List[Dict[str, Any]]]:
        """Recompute chain hashes and check the links.

        Every entry's chain hash must match the hash recomputed from its
        own fields. For the global chain each parent hash must also equal
        the previous entry's chain hash, the first one the genesis hash.
        Entity chains are interleaved with other entities, so only the
        per-entry hashes are checked for them.

        Returns:
            Tuple of (is_valid, chain entries as dicts).
        """
        scoped = bool(entity_type and entity_id)
        chain = self._select(entity_type, entity_id)

        expected_parent = self.genesis_hash
        for index, entry in enumerate(chain):
            recomputed = self._compute_chain_hash(
                entry.parent_hash, entry.input_hash, entry.output_hash,
                entry.operation, entry.timestamp,
            )
            if recomputed != entry.chain_hash:
                logger.warning(
                    "Chain verification failed at entry %d: hash mismatch", index,
                )
                return False, [e.to_dict() for e in chain]
            if not scoped and entry.parent_hash != expected_parent:
                logger.warning(
                    "Chain verification failed at entry %d: broken link", index,
                )
                return False, [e.to_dict() for e in chain]
            expected_parent = entry.chain_hash

        return True, [e.to_dict() for e in chain]

    def get_chain(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Entries of one entity, or of the whole log, oldest first."""
        return [e.to_dict() for e in self._select(entity_type, entity_id)]

    def get_latest_hash(self) -> str:
        with self._lock:
            return self._last_chain_hash

    # ------------------------------------------------------------------
    # Reset and export
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Drop every entry and return to the genesis hash."""
        with self._lock:
            self._entries.clear()
            self._by_entity.clear()
            self._last_chain_hash = self.genesis_hash
        logger.info("ProvenanceTracker reset to genesis")

    def export_json(self) -> str:
        """Export the whole log as a JSON array."""
        return json.dumps(self.get_chain(), indent=2, default=str)

    @property
    def entry_count(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def entity_count(self) -> int:
        with self._lock:
            return len(self._by_entity)


# ---------------------------------------------------------------------------
# Thread-safe singleton
# ---------------------------------------------------------------------------

_tracker_instance: Optional[ProvenanceTracker] = None
_tracker_lock = threading.Lock()


def get_provenance_tracker() -> ProvenanceTracker:
    """Return the process-wide ProvenanceTracker, created on first use."""
    global _tracker_instance
    if _tracker_instance is None:
        with _tracker_lock:
            if _tracker_instance is None:
                _tracker_instance = ProvenanceTracker()
    return _tracker_instance


__all__ = [
    "ProvenanceEntry",
    "ProvenanceTracker",
    "get_provenance_tracker",
]
