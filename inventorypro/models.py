from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy import event
from werkzeug.security import check_password_hash, generate_password_hash

from flask_login import UserMixin

from inventorypro.extensions import db


class ItemStatus(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"
    DECOMMISSIONED = "decommissioned"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @property
    def badge(self) -> str:
        return STATUS_BADGES[self]

    @property
    def is_known(self) -> bool:
        return True


STATUS_LABELS = {
    ItemStatus.AVAILABLE: "Available",
    ItemStatus.IN_USE: "In use",
    ItemStatus.MAINTENANCE: "Maintenance",
    ItemStatus.DECOMMISSIONED: "Decommissioned",
}

STATUS_BADGES = {
    ItemStatus.AVAILABLE: "default",
    ItemStatus.IN_USE: "secondary",
    ItemStatus.MAINTENANCE: "outline",
    ItemStatus.DECOMMISSIONED: "destructive",
}


@dataclass(frozen=True)
class UnknownStatus:
    """A stored status value outside :class:`ItemStatus`; displayed verbatim."""

    value: str

    @property
    def label(self) -> str:
        return self.value

    @property
    def badge(self) -> str:
        return "outline"

    @property
    def is_known(self) -> bool:
        return False


def resolve_status(raw: str | None) -> ItemStatus | UnknownStatus:
    if isinstance(raw, ItemStatus):
        return raw
    try:
        return ItemStatus(raw)
    except ValueError:
        return UnknownStatus(raw or "")


class Collaborator(db.Model):
    __tablename__ = "collaborators"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255))
    department = db.Column(db.String(255))
    position = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Collaborator {self.name}>"


class InventoryItem(db.Model):
    __tablename__ = "inventory_items"

    id = db.Column(db.Integer, primary_key=True)
    patrimony_number = db.Column(db.String(64), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(120))
    quantity = db.Column(db.Integer, nullable=False, default=0)
    minimum_stock = db.Column(db.Integer, nullable=False, default=0)
    location = db.Column(db.String(255))
    status = db.Column(db.String(32), nullable=False, default=ItemStatus.AVAILABLE.value)
    collaborator_id = db.Column(
        db.Integer,
        db.ForeignKey("collaborators.id", ondelete="SET NULL"),
        nullable=True,
    )
    ticket_number = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    collaborator = db.relationship("Collaborator", backref="items")
    movements = db.relationship(
        "StockMovement",
        back_populates="item",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity"),
        db.CheckConstraint("minimum_stock >= 0", name="ck_inventory_items_minimum_stock"),
    )

    @property
    def status_variant(self) -> ItemStatus | UnknownStatus:
        return resolve_status(self.status)

    @property
    def is_low_stock(self) -> bool:
        return is_low_stock(self)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<InventoryItem {self.patrimony_number}>"


def is_low_stock(item) -> bool:
    """Shared low-stock predicate for list rows and dashboard counts."""

    quantity = int(item.quantity or 0)
    minimum = int(item.minimum_stock or 0)
    return quantity <= minimum


class StockMovement(db.Model):
    __tablename__ = "stock_movements"

    TYPE_IN = "IN"
    TYPE_OUT = "OUT"
    TYPE_ADJUST = "ADJUST"

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(
        db.Integer,
        db.ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity = db.Column(db.Integer, nullable=False)
    movement_type = db.Column(db.String(16), nullable=False)
    reference = db.Column(db.String(255))
    created_by = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    item = db.relationship("InventoryItem", back_populates="movements")


class AuthUser(UserMixin, db.Model):
    __tablename__ = "auth_users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    email_confirmed_at = db.Column(db.DateTime, nullable=True)
    user_metadata = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    last_sign_in_at = db.Column(db.DateTime, nullable=True)

    profile = db.relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def email_confirmed(self) -> bool:
        return self.email_confirmed_at is not None

    @property
    def display_name(self) -> str:
        metadata = self.user_metadata or {}
        return metadata.get("full_name") or self.email

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<AuthUser {self.email}>"


class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("auth_users.id", ondelete="CASCADE"),
        unique=True,
        nullable=True,
    )
    full_name = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False)
    department = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship("AuthUser", back_populates="profile")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Profile {self.email}>"


@event.listens_for(AuthUser, "after_insert")
def _create_profile_for_new_user(mapper, connection, target):
    """Provision the profile row for every newly inserted auth user."""

    metadata = target.user_metadata or {}
    connection.execute(
        Profile.__table__.insert().values(
            user_id=target.id,
            full_name=metadata.get("full_name") or "",
            email=target.email,
            created_at=datetime.utcnow(),
        )
    )


class SystemSetting(db.Model):
    __tablename__ = "system_settings"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), unique=True, nullable=False)
    value = db.Column(db.Text, nullable=False, default="")
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<SystemSetting {self.key}={self.value!r}>"
