# campusvote/database/models.py

from campusvote import db
from datetime import datetime

# Shared key-value table holding the candidate list and per-voter ballots


class StoreEntry(db.Model):
    __tablename__ = 'store_entries'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=False)  # JSON text
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<StoreEntry {self.key}>'
