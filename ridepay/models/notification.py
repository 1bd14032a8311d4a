from datetime import datetime
from ridepay.extension import db


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    recipient_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    kind = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    data = db.Column(db.JSON)
    is_read = db.Column(db.Boolean, default=False)
    email_status = db.Column(db.String(20), default="skipped")  # sent, failed, skipped
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    recipient = db.relationship("User", back_populates="notifications")
