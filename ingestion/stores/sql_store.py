"""
SQLAlchemy implementations of the target, asset and term stores.

All three stores share one session so that a record's entity, the assets
and the terms it references are committed together by
``SqlTargetStore.persist``. Asset and term rows are only flushed when they
are created, which makes them visible to later lookups of the same record
and lets ``discard`` roll everything back when the record is abandoned.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Type

import logging
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import MappingError, PersistenceError
from ingestion.stores.base import AssetStore, TargetStore, TermStore
from models import TARGET_KINDS
from models.asset import Asset
from models.term import Term
from schemas.targets import TARGET_VALIDATORS

logger = logging.getLogger(__name__)


class SqlTargetStore(TargetStore):
    """
    Target store backed by SQLAlchemy ORM models.

    Target kinds are resolved by name through ``kinds`` (defaults to
    ``models.TARGET_KINDS``). Validation uses the pydantic schema registered
    for the kind in ``validators``; kinds without a schema always validate.
    """

    def __init__(
        self,
        session: Session,
        kinds: Optional[Dict[str, Type]] = None,
        validators: Optional[Dict[str, Type[BaseModel]]] = None
    ):
        self.session = session
        self.kinds = dict(kinds if kinds is not None else TARGET_KINDS)
        self.validators = dict(validators if validators is not None else TARGET_VALIDATORS)
        self._kind_names = {model: name for name, model in self.kinds.items()}

    def create(self, kind: str) -> Any:
        return self._model(kind)()

    def find_by_field(self, kind: str, field: str, value: Any) -> Optional[Any]:
        model = self._model(kind)
        column = getattr(model, field, None)
        if column is None:
            raise MappingError(
                f"{kind} has no field '{field}'",
                context={"target_kind": kind, "field": field}
            )

        result = self.session.execute(select(model).where(column == value))
        return result.scalars().first()

    def validate(self, entity: Any) -> List[str]:
        kind = self._kind_names.get(type(entity))
        schema = self.validators.get(kind)
        if schema is None:
            return []

        try:
            schema.model_validate(entity)
        except PydanticValidationError as e:
            return [
                f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
        return []

    def persist(self, entity: Any):
        kind = self._kind_names.get(type(entity), type(entity).__name__)
        operation = "UPDATE" if inspect(entity).persistent else "INSERT"

        try:
            self.session.add(entity)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(
                f"Failed to write {kind}: {e}",
                context={"target_kind": kind, "operation": operation},
                original_exception=e
            )

    def is_relation_many(self, kind: str, relation: str) -> bool:
        relationships = inspect(self._model(kind)).relationships
        if relation not in relationships:
            raise MappingError(
                f"{kind} has no relation '{relation}'",
                context={"target_kind": kind, "relation": relation}
            )
        return bool(relationships[relation].uselist)

    def discard(self, entity: Any):
        self.session.rollback()

    def _model(self, kind: str) -> Type:
        try:
            return self.kinds[kind]
        except KeyError:
            raise MappingError(
                f"Unknown target kind: {kind}",
                context={"target_kind": kind, "known_kinds": sorted(self.kinds)}
            )


class SqlAssetStore(AssetStore):
    """
    Asset store writing binaries under ``assets_dir/<folder>/<key>`` and
    tracking them in the ``assets`` table.
    """

    def __init__(self, session: Session, assets_dir: str):
        self.session = session
        self.assets_dir = Path(assets_dir)

    def find_by_key(self, folder: str, key: str) -> Optional[Asset]:
        result = self.session.execute(
            select(Asset).where(Asset.folder == folder, Asset.name == key)
        )
        return result.scalars().first()

    def store(self, content: bytes, folder: str, key: str, title: Optional[str]) -> Asset:
        target = self.assets_dir / folder / key
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

        asset = Asset(
            folder=folder,
            name=key,
            title=title,
            path=str(target),
            size=len(content)
        )
        self.session.add(asset)
        self._flush(asset)

        logger.debug(f"Stored asset {folder}/{key} ({len(content)} bytes)")
        return asset

    def update_title(self, asset: Asset, title: str):
        asset.title = title
        self._flush(asset)

    def _flush(self, asset: Asset):
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(
                f"Failed to write asset {asset.folder}/{asset.name}: {e}",
                context={"target_kind": "Asset", "operation": "INSERT"},
                original_exception=e
            )


class SqlTermStore(TermStore):
    """Term store backed by the ``terms`` table"""

    def __init__(self, session: Session):
        self.session = session

    def find_by_title(self, title_field: str, title: str) -> Optional[Term]:
        result = self.session.execute(
            select(Term).where(self._column(title_field) == title)
        )
        return result.scalars().first()

    def create(self, title_field: str, title: str) -> Term:
        self._column(title_field)
        term = Term()
        setattr(term, title_field, title)
        self.session.add(term)

        try:
            self.session.flush()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(
                f"Failed to write term {title!r}: {e}",
                context={"target_kind": "Term", "operation": "INSERT"},
                original_exception=e
            )

        return term

    @staticmethod
    def _column(title_field: str):
        column = getattr(Term, title_field, None)
        if column is None:
            raise MappingError(
                f"Term has no field '{title_field}'",
                context={"title_field": title_field}
            )
        return column
