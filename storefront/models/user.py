# storefront/models/user.py
import uuid

from . import db, utcnow


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def public_dict(self):
        # só os campos públicos aparecem junto do pedido
        return {"id": self.id, "email": self.email, "name": self.name}

    def __repr__(self):
        return f"<User id={self.id} email={self.email!r}>"
