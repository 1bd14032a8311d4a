from datetime import datetime
from ridepay.extension import db


class User(db.Model):
    """Contact/role record mirrored from the profile service."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    role = db.Column(db.String(20), nullable=False, default="parent")  # parent, driver, admin
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    notifications = db.relationship("Notification", back_populates="recipient")
    changelogs = db.relationship("ChangeLog", back_populates="changed_by_user")
