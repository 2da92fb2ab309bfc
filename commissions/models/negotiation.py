"""Negotiation and negotiation history model module."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commissions.models.base import AuditMixin, Base
from commissions.models.enums import (
    ACTIVE_STATUSES,
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    ActorRole,
    HistoryAction,
    NegotiationStatus,
    OfferType,
)


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


def enum_column(enum_cls) -> Enum:
    """String-backed enum column storing member values."""
    return Enum(enum_cls, native_enum=False, length=32, values_callable=_enum_values)


def build_subject_key(manager_id: int, service_id: int | None) -> str:
    return f"{manager_id}:{service_id if service_id is not None else '*'}"


_ACTIVE_PREDICATE = text(
    "status IN ({}) AND is_active".format(", ".join(f"'{status.value}'" for status in ACTIVE_STATUSES))
)


class Negotiation(Base, AuditMixin):
    __tablename__ = "negotiations"
    __table_args__ = (
        Index(
            "uq_negotiations_active_subject",
            "subject_key",
            unique=True,
            sqlite_where=_ACTIVE_PREDICATE,
            postgresql_where=_ACTIVE_PREDICATE,
        ),
        Index("idx_negotiations_manager_service_active", "manager_id", "service_id", "is_active"),
        Index("idx_negotiations_status_created", "status", "created_at"),
        Index("idx_negotiations_validity", "valid_from", "valid_until"),
        CheckConstraint(
            "offered_percentage >= 0 AND offered_percentage <= 100",
            name="ck_negotiations_offered_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    manager_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    service_id: Mapped[int | None] = mapped_column(ForeignKey("services.id", ondelete="RESTRICT"), index=True)
    subject_key: Mapped[str] = mapped_column(String(64), nullable=False)

    offered_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    counter_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    final_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    status: Mapped[NegotiationStatus] = mapped_column(
        enum_column(NegotiationStatus), default=NegotiationStatus.PENDING, nullable=False
    )
    offer_type: Mapped[OfferType] = mapped_column(
        enum_column(OfferType), default=OfferType.MANAGER_OFFER, nullable=False
    )

    admin_notes: Mapped[str | None] = mapped_column(Text)
    admin_responded_by: Mapped[int | None] = mapped_column(Integer)
    admin_responded_at: Mapped[datetime | None] = mapped_column(DateTime)

    manager_response: Mapped[str | None] = mapped_column(String(16))
    manager_notes: Mapped[str | None] = mapped_column(Text)
    manager_responded_at: Mapped[datetime | None] = mapped_column(DateTime)

    agreed_at: Mapped[datetime | None] = mapped_column(DateTime)
    agreed_by: Mapped[int | None] = mapped_column(Integer)

    valid_from: Mapped[datetime | None] = mapped_column(DateTime)
    valid_until: Mapped[datetime | None] = mapped_column(DateTime)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    min_order_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    max_order_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    history: Mapped[list["NegotiationHistoryEntry"]] = relationship(
        back_populates="negotiation",
        order_by="NegotiationHistoryEntry.sequence",
        cascade="all, delete-orphan",
    )
    service = relationship("ServiceListing", foreign_keys=[service_id])

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def add_history_entry(
        self,
        action: HistoryAction,
        actor_id: int,
        actor_role: ActorRole,
        timestamp: datetime,
        percentage: Decimal | None = None,
        notes: str | None = None,
    ) -> "NegotiationHistoryEntry":
        entry = NegotiationHistoryEntry(
            sequence=len(self.history) + 1,
            timestamp=timestamp,
            action=action,
            percentage=percentage,
            notes=notes,
            actor_id=actor_id,
            actor_role=actor_role,
        )
        self.history.append(entry)
        return entry


class NegotiationHistoryEntry(Base):
    __tablename__ = "negotiation_history"
    __table_args__ = (
        UniqueConstraint("negotiation_id", "sequence", name="uq_negotiation_history_sequence"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    negotiation_id: Mapped[int] = mapped_column(
        ForeignKey("negotiations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    action: Mapped[HistoryAction] = mapped_column(enum_column(HistoryAction), nullable=False)
    percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    notes: Mapped[str | None] = mapped_column(Text)
    actor_id: Mapped[int] = mapped_column(Integer, nullable=False)
    actor_role: Mapped[ActorRole] = mapped_column(enum_column(ActorRole), nullable=False)

    negotiation: Mapped[Negotiation] = relationship(back_populates="history")
