from datetime import datetime, timezone
from resultboard import db, bcrypt
from flask_login import UserMixin


def _utcnow():
    return datetime.now(timezone.utc)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    default_time = db.Column(db.String(16), nullable=False, default='')
    # Display rank; kept de facto unique by the catalog, not by the schema
    order_index = db.Column(db.Integer, nullable=False, default=999, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'defaultTime': self.default_time or '',
            'orderIndex': self.order_index,
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f'<Game {self.code} #{self.order_index}>'


class Result(db.Model):
    """One observed value for a game at a minute-of-day slot on a civil date."""
    __tablename__ = 'result'
    id = db.Column(db.Integer, primary_key=True)
    # No FK: results stay addressable after their game is deleted
    game_id = db.Column(db.Integer, nullable=False, index=True)
    date_str = db.Column(db.String(10), nullable=False)
    slot_min = db.Column(db.Integer, nullable=False)
    value = db.Column(db.String(8), nullable=False)
    note = db.Column(db.Text, nullable=False, default='')
    source = db.Column(db.String(32), nullable=False, default='manual')
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.UniqueConstraint('game_id', 'date_str', 'slot_min', name='uq_result_game_date_slot'),
        db.Index('ix_result_date_slot', 'date_str', 'slot_min'),
        db.CheckConstraint('slot_min >= 0 AND slot_min <= 1439', name='ck_result_slot_range'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'gameId': self.game_id,
            'dateStr': self.date_str,
            'slotMin': self.slot_min,
            'value': self.value,
            'note': self.note or '',
            'source': self.source,
        }

    def __repr__(self):
        return f'<Result game={self.game_id} {self.date_str}@{self.slot_min}={self.value}>'
