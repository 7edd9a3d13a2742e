"""
Pytest configuration and fixtures
"""

import json
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from core.database import create_session_factory
from core.exceptions import AssetFetchError
from ingestion.checkpoint import CheckpointStore
from ingestion.mapper import RecordMapper
from ingestion.retry import RetryPolicy
from ingestion.stores.base import AssetFetcher, AssetStore, TargetStore, TermStore
from models.base import Base


# ============================================================================
# In-memory collaborators
# ============================================================================

class FakeEntity:
    """Attribute bag standing in for a target entity"""

    def __init__(self, kind: str, many_relations: Iterable[str]):
        self.kind = kind
        for relation in many_relations:
            setattr(self, relation, [])

    def __repr__(self):
        return f"<FakeEntity {vars(self)}>"


class InMemoryTargetStore(TargetStore):
    """Target store keeping entities in a list; ``title`` is mandatory"""

    def __init__(self, many_relations=("gallery", "categories"), required=("title",)):
        self.many_relations = tuple(many_relations)
        self.required = tuple(required)
        self.entities: List[FakeEntity] = []
        self.persist_calls = 0
        self.discarded: List[FakeEntity] = []

    def create(self, kind):
        return FakeEntity(kind, self.many_relations)

    def find_by_field(self, kind, field, value):
        for entity in self.entities:
            if getattr(entity, field, None) == value:
                return entity
        return None

    def validate(self, entity):
        return [
            f"{name.capitalize()} must not be empty"
            for name in self.required
            if not getattr(entity, name, None)
        ]

    def persist(self, entity):
        self.persist_calls += 1
        if entity not in self.entities:
            self.entities.append(entity)

    def is_relation_many(self, kind, relation):
        return relation in self.many_relations

    def discard(self, entity):
        self.discarded.append(entity)


class InMemoryAssetStore(AssetStore):
    def __init__(self):
        self.assets: Dict[tuple, SimpleNamespace] = {}
        self.lookups: List[tuple] = []
        self.title_updates: List[tuple] = []

    def find_by_key(self, folder, key):
        self.lookups.append((folder, key))
        return self.assets.get((folder, key))

    def store(self, content, folder, key, title):
        asset = SimpleNamespace(folder=folder, name=key, title=title, content=content)
        self.assets[(folder, key)] = asset
        return asset

    def update_title(self, asset, title):
        asset.title = title
        self.title_updates.append((asset.name, title))


class InMemoryTermStore(TermStore):
    def __init__(self):
        self.terms: List[SimpleNamespace] = []
        self.created: List[str] = []

    def find_by_title(self, title_field, title):
        for term in self.terms:
            if getattr(term, title_field, None) == title:
                return term
        return None

    def create(self, title_field, title):
        term = SimpleNamespace(**{title_field: title})
        self.terms.append(term)
        self.created.append(title)
        return term


class FakeAssetFetcher(AssetFetcher):
    def __init__(self, failing: Optional[Iterable[str]] = None):
        self.failing = set(failing or [])
        self.fetched: List[str] = []

    def fetch(self, url):
        self.fetched.append(url)
        if url in self.failing:
            raise AssetFetchError(f"HTTP 404 for {url}", context={"url": url})
        return f"content of {url}".encode("utf-8")


class ListReaderFactory:
    """Reader factory serving a fixed list of records as a fresh generator"""

    def __init__(self, records: List[Dict[str, Any]]):
        self.records = records
        self.created = 0

    def create(self, file_path):
        self.created += 1
        return (dict(record) for record in self.records)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def target_store():
    return InMemoryTargetStore()


@pytest.fixture
def asset_store():
    return InMemoryAssetStore()


@pytest.fixture
def term_store():
    return InMemoryTermStore()


@pytest.fixture
def asset_fetcher():
    return FakeAssetFetcher()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def retry_policy(sleeps):
    """Retry policy recording delays instead of sleeping"""
    return RetryPolicy(max_attempts=3, base_delay=0.2, sleep=sleeps.append)


@pytest.fixture
def checkpoint_store(tmp_path):
    """Real checkpoint store with call recording"""
    return Mock(wraps=CheckpointStore(tmp_path / "checkpoints"))


@pytest.fixture
def make_mapper(target_store, term_store, asset_store, asset_fetcher, retry_policy):
    def _make(field_mappings, stop_on_error=False, **overrides):
        options = dict(
            target_kind="Article",
            field_mappings=field_mappings,
            target_store=target_store,
            term_store=term_store,
            asset_store=asset_store,
            asset_fetcher=asset_fetcher,
            asset_folder="TestImages",
            stop_on_error=stop_on_error,
            retry_policy=retry_policy,
        )
        options.update(overrides)
        return RecordMapper(**options)

    return _make


@pytest.fixture
def write_jsonl(tmp_path):
    def _write(name, records):
        path = tmp_path / name
        path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with all tables created"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Create database session for tests"""
    session_factory = create_session_factory(db_engine)
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def mock_article_records():
    """Article records as they appear in a JSON export"""
    return [
        {
            "id": "art_001",
            "title": "Harbour reopens",
            "published": "2025-10-22 12:34:00",
            "category": "News, Local",
            "images": [
                {"src": "https://cdn.example.com/img/harbour.jpg", "title": "Harbour at dawn"},
                "https://cdn.example.com/img/boats.jpg",
            ],
            "hero": "https://cdn.example.com/img/harbour.jpg",
        },
        {
            "id": "art_002",
            "title": "Council meeting",
            "published": "2025-10-23 09:00:00",
            "category": ["News"],
            "images": "https://cdn.example.com/img/council.png",
        },
    ]


@pytest.fixture
def list_reader_factory():
    """Factory building a reader factory over in-memory records"""
    return ListReaderFactory
