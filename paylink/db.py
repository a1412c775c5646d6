"""
Client record storage: a SQLAlchemy implementation and an in-memory test double.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, Float, String, create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from paylink.hashing import digests_match


class DuplicateBaseUrlError(Exception):
    """Raised when a record for the base URL already exists."""

    def __init__(self, base_url: str):
        super().__init__(f"Client already exists: {base_url}")
        self.base_url = base_url


@dataclass
class ClientRecord:
    base_url: str
    secret_hash: str
    upi_id: str = ""
    qr_image_path: str = ""
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def public_fields(self) -> dict:
        return {
            "baseUrl": self.base_url,
            "upiId": self.upi_id,
            "qrImagePath": self.qr_image_path,
        }


@dataclass(frozen=True)
class ClientChanges:
    """Fields to overwrite on update. ``None`` leaves the stored value alone."""

    upi_id: Optional[str] = None
    qr_image_path: Optional[str] = None
    secret_hash: Optional[str] = None


@dataclass(frozen=True)
class ClientUpdate:
    previous: ClientRecord
    current: ClientRecord


class ClientStore(Protocol):
    """Interface for client record persistence."""

    def get_client(self, base_url: str) -> Optional[ClientRecord]:
        ...

    def create_client(self, record: ClientRecord) -> ClientRecord:
        """Insert a new record; raises DuplicateBaseUrlError if the key exists."""
        ...

    def update_client(
        self, base_url: str, expected_secret_hash: str, changes: ClientChanges
    ) -> Optional[ClientUpdate]:
        """
        Apply ``changes`` only if the stored digest equals ``expected_secret_hash``.

        Verification and write happen as one operation. Returns None when the
        record is missing or the digest does not match.
        """
        ...


def _apply_changes(record: ClientRecord, changes: ClientChanges, now: float) -> None:
    if changes.upi_id is not None:
        record.upi_id = changes.upi_id
    if changes.qr_image_path is not None:
        record.qr_image_path = changes.qr_image_path
    if changes.secret_hash is not None:
        record.secret_hash = changes.secret_hash
    record.updated_at = now


class InMemoryClientStore:
    """Simple in-memory store for development and tests."""

    def __init__(self):
        self.clients: Dict[str, ClientRecord] = {}
        self._lock = threading.Lock()

    def get_client(self, base_url: str) -> Optional[ClientRecord]:
        record = self.clients.get(base_url)
        return replace(record) if record else None

    def create_client(self, record: ClientRecord) -> ClientRecord:
        with self._lock:
            if record.base_url in self.clients:
                raise DuplicateBaseUrlError(record.base_url)
            self.clients[record.base_url] = replace(record)
        return replace(record)

    def update_client(
        self, base_url: str, expected_secret_hash: str, changes: ClientChanges
    ) -> Optional[ClientUpdate]:
        with self._lock:
            record = self.clients.get(base_url)
            if not record or not digests_match(
                expected_secret_hash, record.secret_hash
            ):
                return None
            previous = replace(record)
            _apply_changes(record, changes, time.time())
            return ClientUpdate(previous=previous, current=replace(record))

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.clients.clear()


class SqlClientStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlClientStore")
        connect_args = {}
        if database_url.startswith("sqlite"):
            # Requests are served from the threadpool.
            connect_args["check_same_thread"] = False
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
            connect_args=connect_args,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_record(self, row: "ClientRow") -> ClientRecord:
        return ClientRecord(
            base_url=row.base_url,
            secret_hash=row.secret_hash,
            upi_id=row.upi_id or "",
            qr_image_path=row.qr_image_path or "",
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def get_client(self, base_url: str) -> Optional[ClientRecord]:
        with self.Session() as session:
            stmt = select(ClientRow).where(ClientRow.base_url == base_url)
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_record(row) if row else None

    def create_client(self, record: ClientRecord) -> ClientRecord:
        with self.Session() as session:
            row = ClientRow(
                id=uuid.uuid4().hex,
                base_url=record.base_url,
                upi_id=record.upi_id,
                qr_image_path=record.qr_image_path,
                secret_hash=record.secret_hash,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateBaseUrlError(record.base_url) from exc
            session.refresh(row)
            return self._to_record(row)

    def update_client(
        self, base_url: str, expected_secret_hash: str, changes: ClientChanges
    ) -> Optional[ClientUpdate]:
        with self.Session() as session:
            stmt = (
                select(ClientRow)
                .where(ClientRow.base_url == base_url)
                .with_for_update()
            )
            row = session.execute(stmt).scalar_one_or_none()
            if not row or not digests_match(expected_secret_hash, row.secret_hash):
                session.rollback()
                return None
            previous = self._to_record(row)
            current = replace(previous)
            _apply_changes(current, changes, time.time())
            row.upi_id = current.upi_id
            row.qr_image_path = current.qr_image_path
            row.secret_hash = current.secret_hash
            row.updated_at = current.updated_at
            session.commit()
            session.refresh(row)
            return ClientUpdate(previous=previous, current=self._to_record(row))


Base = declarative_base()


class ClientRow(Base):
    __tablename__ = "clients"

    id = Column(String, primary_key=True)
    base_url = Column(String, nullable=False, unique=True, index=True)
    upi_id = Column(String, nullable=True)
    qr_image_path = Column(String, nullable=True)
    secret_hash = Column(String, nullable=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)
