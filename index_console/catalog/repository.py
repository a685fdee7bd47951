from __future__ import annotations

from copy import deepcopy
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import Column, DateTime, Enum, Integer, String, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..exceptions import UnknownSchemaError
from .models import IndexRecord, SchemaRecord, SubmissionRecord, SubmissionStatus, check_name

Base = declarative_base()


class SchemaModel(Base):
    __tablename__ = "schemas"
    name = Column(String, primary_key=True)
    created_at = Column(DateTime)


class IndexModel(Base):
    __tablename__ = "indexes"
    schema_name = Column(String, primary_key=True)
    name = Column(String, primary_key=True)
    created_at = Column(DateTime)


class SubmissionModel(Base):
    __tablename__ = "submissions"
    id = Column(String, primary_key=True)
    schema_name = Column(String, index=True)
    index_name = Column(String, index=True)
    status = Column(Enum(SubmissionStatus))
    record_count = Column(Integer)
    error_message = Column(String)
    created_at = Column(DateTime)


def parse_catalog_spec(spec: str) -> List[Tuple[str, List[str]]]:
    """
    Parse `schema:idx1,idx2;schema2:idx3` into [(schema, [indexes])].
    A schema without a colon is registered with no indexes.
    """
    entries: List[Tuple[str, List[str]]] = []
    for chunk in (spec or "").split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        schema_name, _, index_part = chunk.partition(":")
        indexes = [name.strip() for name in index_part.split(",") if name.strip()]
        entries.append((schema_name.strip(), indexes))
    return entries


class IndexCatalog:
    """
    Registry of known schemas/indexes plus the submission log. Schemas and
    indexes are registered by configuration only; the HTTP API reads them.
    Names that are not path-safe are refused at registration.
    """

    # Catalog
    def register_index(self, schema_name: str, index_name: Optional[str] = None) -> None:
        raise NotImplementedError

    def list_schemas(self) -> List[SchemaRecord]:
        raise NotImplementedError

    def list_indexes(self, schema_name: str) -> List[IndexRecord]:
        raise NotImplementedError

    def get_index(self, schema_name: str, index_name: str) -> Optional[IndexRecord]:
        raise NotImplementedError

    # Submission log
    def save_submission(self, submission: SubmissionRecord) -> None:
        raise NotImplementedError

    def list_submissions(self, schema_name: str, index_name: str) -> List[SubmissionRecord]:
        raise NotImplementedError

    def seed(self, spec: str) -> None:
        for schema_name, indexes in parse_catalog_spec(spec):
            self.register_index(schema_name)
            for index_name in indexes:
                self.register_index(schema_name, index_name)


class InMemoryIndexCatalog(IndexCatalog):
    """
    Dict-backed catalog for local runs and tests. Returns copies so callers
    cannot mutate stored records.
    """

    def __init__(self):
        self.schemas: Dict[str, SchemaRecord] = {}
        self.indexes: Dict[Tuple[str, str], IndexRecord] = {}
        self.submissions: Dict[str, SubmissionRecord] = {}

    def _clone(self, obj):
        return deepcopy(obj)

    def register_index(self, schema_name: str, index_name: Optional[str] = None) -> None:
        check_name(schema_name)
        if index_name:
            check_name(index_name)
        if schema_name not in self.schemas:
            self.schemas[schema_name] = SchemaRecord(name=schema_name)
        if index_name and (schema_name, index_name) not in self.indexes:
            self.indexes[(schema_name, index_name)] = IndexRecord(schema_name=schema_name, name=index_name)

    def list_schemas(self) -> List[SchemaRecord]:
        return [self._clone(s) for s in sorted(self.schemas.values(), key=lambda s: s.name)]

    def list_indexes(self, schema_name: str) -> List[IndexRecord]:
        if schema_name not in self.schemas:
            raise UnknownSchemaError(schema_name)
        found = [i for i in self.indexes.values() if i.schema_name == schema_name]
        return [self._clone(i) for i in sorted(found, key=lambda i: i.name)]

    def get_index(self, schema_name: str, index_name: str) -> Optional[IndexRecord]:
        record = self.indexes.get((schema_name, index_name))
        return self._clone(record) if record else None

    def save_submission(self, submission: SubmissionRecord) -> None:
        self.submissions[submission.id] = self._clone(submission)

    def list_submissions(self, schema_name: str, index_name: str) -> List[SubmissionRecord]:
        found = [
            s for s in self.submissions.values() if s.schema_name == schema_name and s.index_name == index_name
        ]
        return [self._clone(s) for s in sorted(found, key=lambda s: s.created_at)]


class SqlAlchemyIndexCatalog(IndexCatalog):
    """
    SQL-backed catalog using SQLAlchemy. Works with SQLite/Postgres URLs.
    """

    def __init__(self, database_url: str):
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    # region Catalog
    def register_index(self, schema_name: str, index_name: Optional[str] = None) -> None:
        check_name(schema_name)
        if index_name:
            check_name(index_name)
        with self._session() as session:
            if session.get(SchemaModel, schema_name) is None:
                session.add(SchemaModel(name=schema_name, created_at=datetime.utcnow()))
            if index_name and session.get(IndexModel, (schema_name, index_name)) is None:
                session.add(IndexModel(schema_name=schema_name, name=index_name, created_at=datetime.utcnow()))
            session.commit()

    def list_schemas(self) -> List[SchemaRecord]:
        with self._session() as session:
            models = session.execute(select(SchemaModel).order_by(SchemaModel.name)).scalars().all()
            return [SchemaRecord(name=m.name, created_at=m.created_at) for m in models]

    def list_indexes(self, schema_name: str) -> List[IndexRecord]:
        with self._session() as session:
            if session.get(SchemaModel, schema_name) is None:
                raise UnknownSchemaError(schema_name)
            stmt = select(IndexModel).where(IndexModel.schema_name == schema_name).order_by(IndexModel.name)
            models = session.execute(stmt).scalars().all()
            return [IndexRecord(schema_name=m.schema_name, name=m.name, created_at=m.created_at) for m in models]

    def get_index(self, schema_name: str, index_name: str) -> Optional[IndexRecord]:
        with self._session() as session:
            model = session.get(IndexModel, (schema_name, index_name))
            if not model:
                return None
            return IndexRecord(schema_name=model.schema_name, name=model.name, created_at=model.created_at)

    # endregion

    # region Submission log
    def save_submission(self, submission: SubmissionRecord) -> None:
        with self._session() as session:
            model = SubmissionModel(
                id=submission.id,
                schema_name=submission.schema_name,
                index_name=submission.index_name,
                status=submission.status,
                record_count=submission.record_count,
                error_message=submission.error_message,
                created_at=submission.created_at,
            )
            session.merge(model)
            session.commit()

    def list_submissions(self, schema_name: str, index_name: str) -> List[SubmissionRecord]:
        with self._session() as session:
            stmt = (
                select(SubmissionModel)
                .where(SubmissionModel.schema_name == schema_name, SubmissionModel.index_name == index_name)
                .order_by(SubmissionModel.created_at)
            )
            models = session.execute(stmt).scalars().all()
            return [
                SubmissionRecord(
                    id=m.id,
                    schema_name=m.schema_name,
                    index_name=m.index_name,
                    status=m.status,
                    record_count=int(m.record_count or 0),
                    error_message=m.error_message,
                    created_at=m.created_at,
                )
                for m in models
            ]

    # endregion
