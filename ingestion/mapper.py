# ============================================================================
# File: ingestion/mapper.py
# Description: Maps one source record onto a target entity and writes it
# ============================================================================
"""
Record mapper - applies a field map to a record and persists the result.

Each field kind has exactly one handler; the handler table is the only
place that knows which kinds exist. Heterogeneous values (URL strings,
comma lists, objects, mixed lists) are normalized in ``ingestion.normalize``
before any handler logic runs.
"""

import enum
import hashlib
import json
import logging
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, List, Optional, Sequence

from core.exceptions import AssetFetchError, MappingError, ValidationError
from ingestion.normalize import (
    AssetDescriptor,
    asset_key,
    normalize_asset_descriptors,
    normalize_term_titles,
    parse_date,
)
from ingestion.retry import RetryPolicy
from ingestion.stores.base import AssetFetcher, AssetStore, TargetStore, TermStore
from schemas.migration import FieldKind, FieldMapping, Transform

logger = logging.getLogger(__name__)


class RecordOutcome(str, enum.Enum):
    """What happened to one record"""
    PERSISTED = "persisted"
    INVALID = "invalid"
    UNCONFIRMED = "unconfirmed"


class RecordMapper:
    """
    Maps records onto entities of one target kind.

    Responsibilities:
    - Resolve an existing entity through the first present unique mapping
    - Apply every mapping in order, one handler per field kind
    - Find or fetch assets and terms and attach them to relations
    - Validate and persist, repeating the whole record on transient failures
    """

    def __init__(
        self,
        target_kind: str,
        field_mappings: Sequence[FieldMapping],
        target_store: TargetStore,
        term_store: Optional[TermStore] = None,
        asset_store: Optional[AssetStore] = None,
        asset_fetcher: Optional[AssetFetcher] = None,
        asset_folder: str = "ImportedImages",
        stop_on_error: bool = False,
        retry_policy: Optional[RetryPolicy] = None
    ):
        self.target_kind = target_kind
        self.field_mappings = list(field_mappings)
        self.target_store = target_store
        self.term_store = term_store
        self.asset_store = asset_store
        self.asset_fetcher = asset_fetcher
        self.asset_folder = asset_folder
        self.stop_on_error = stop_on_error
        self.retry_policy = retry_policy or RetryPolicy()

        self._handlers: Dict[FieldKind, Callable[[Any, FieldMapping, Any], None]] = {
            FieldKind.SCALAR: self._apply_scalar,
            FieldKind.UNIQUE: self._apply_unique,
            FieldKind.IMAGES: self._apply_images,
            FieldKind.TAXONOMY: self._apply_taxonomy,
        }

    def process(self, record: Dict[str, Any]) -> RecordOutcome:
        """
        Map, validate and persist one record.

        Transient failures repeat the whole unit, so an entity expired by a
        rolled back write is resolved and mapped again before the next try.

        Raises:
            ValidationError: If the entity is invalid and stop_on_error is set
            MappingError: If a mapping cannot be applied
            Exception: Non-transient persistence errors, unchanged
        """
        attempt: Dict[str, Any] = {}

        def write():
            attempt["outcome"] = self._write(record, attempt)

        if self.retry_policy.run(write):
            return attempt["outcome"]

        logger.error(f"Write not confirmed for record: {json.dumps(record, default=str)}")
        self.target_store.discard(attempt.get("entity"))
        return RecordOutcome.UNCONFIRMED

    def _write(self, record: Dict[str, Any], attempt: Dict[str, Any]) -> RecordOutcome:
        entity = self.resolve_entity(record)
        attempt["entity"] = entity
        self.apply(entity, record)

        messages = self.target_store.validate(entity)
        if messages:
            msg = (
                f"Validation failed for record: {json.dumps(record, default=str)} "
                f"Errors: {json.dumps(messages)}"
            )
            logger.warning(msg)
            self.target_store.discard(entity)

            if self.stop_on_error:
                raise ValidationError(
                    msg,
                    messages=messages,
                    context={"target_kind": self.target_kind}
                )

            return RecordOutcome.INVALID

        self.target_store.persist(entity)
        return RecordOutcome.PERSISTED

    def resolve_entity(self, record: Dict[str, Any]) -> Any:
        """Existing entity matched by the first present unique field, or a new one"""
        for mapping in self.field_mappings:
            if mapping.field_type != FieldKind.UNIQUE:
                continue

            value = record.get(mapping.source_field)
            if value is None:
                continue

            entity = self.target_store.find_by_field(self.target_kind, mapping.dest, value)
            if entity is not None:
                logger.debug(f"Updating existing {self.target_kind} where {mapping.dest}={value!r}")
                return entity

            entity = self.target_store.create(self.target_kind)
            setattr(entity, mapping.dest, value)
            return entity

        return self.target_store.create(self.target_kind)

    def apply(self, entity: Any, record: Dict[str, Any]) -> Any:
        """Apply every mapping whose source value is present and not null"""
        for mapping in self.field_mappings:
            value = record.get(mapping.source_field)

            if value is None:
                continue

            self._handlers[mapping.field_type](entity, mapping, value)

        return entity

    # --------------------------------------------------
    # Field kind handlers
    # --------------------------------------------------

    def _apply_scalar(self, entity: Any, mapping: FieldMapping, value: Any):
        if not mapping.dest:
            return

        if mapping.transform == Transform.DATE:
            value = parse_date(value, mapping.input_format)
            if value is None:
                return

        setattr(entity, mapping.dest, value)

    def _apply_unique(self, entity: Any, mapping: FieldMapping, value: Any):
        if getattr(entity, mapping.dest, None) != value:
            setattr(entity, mapping.dest, value)

    def _apply_images(self, entity: Any, mapping: FieldMapping, value: Any):
        relation = self._require_relation(mapping)
        if self.asset_store is None:
            raise MappingError(
                "Image mapping requires an asset store",
                context={"source_field": mapping.source_field}
            )

        assets = []
        for descriptor in normalize_asset_descriptors(value, mapping.multiple):
            asset = self._resolve_asset(descriptor)
            if asset is None:
                continue

            if descriptor.title and getattr(asset, "title", None) != descriptor.title:
                self.asset_store.update_title(asset, descriptor.title)

            assets.append(asset)

        self._attach(entity, relation, assets)

    def _apply_taxonomy(self, entity: Any, mapping: FieldMapping, value: Any):
        relation = self._require_relation(mapping)
        if self.term_store is None:
            raise MappingError(
                "Taxonomy mapping requires a term store",
                context={"source_field": mapping.source_field}
            )

        terms = []
        for title in normalize_term_titles(value):
            term = self.term_store.find_by_title(mapping.title_field, title)
            if term is None:
                term = self.term_store.create(mapping.title_field, title)
            terms.append(term)

        self._attach(entity, relation, terms)

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------

    def _require_relation(self, mapping: FieldMapping) -> str:
        if not mapping.dest:
            raise MappingError(
                f'{mapping.field_type.value} mapping requires a "dest" relation',
                context={"source_field": mapping.source_field, "field_type": mapping.field_type.value}
            )
        return mapping.dest

    def _resolve_asset(self, descriptor: AssetDescriptor) -> Optional[Any]:
        """Reuse the asset stored under the URL's file name, else fetch it"""
        url = descriptor.src
        key = asset_key(url) or f"asset-{hashlib.sha1(url.encode('utf-8')).hexdigest()[:24]}.jpg"

        existing = self.asset_store.find_by_key(self.asset_folder, key)
        if existing is not None:
            return existing

        if self.asset_fetcher is None:
            logger.warning(f"No asset fetcher configured, skipping {url}")
            return None

        try:
            content = self.asset_fetcher.fetch(url)
        except AssetFetchError as e:
            logger.warning(f"Skipping asset {url}: {e.message}")
            return None

        title = descriptor.title or PurePosixPath(key).stem
        return self.asset_store.store(content, self.asset_folder, key, title)

    def _attach(self, entity: Any, relation: str, related: List[Any]):
        if not related:
            return

        if self.target_store.is_relation_many(self.target_kind, relation):
            collection = getattr(entity, relation)
            for item in related:
                if item not in collection:
                    collection.append(item)
        else:
            for item in related:
                setattr(entity, relation, item)
