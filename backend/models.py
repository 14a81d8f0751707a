from flask_sqlalchemy import SQLAlchemy
from shared.models import Base, Document

db = SQLAlchemy(model_class=Base)

__all__ = ['db', 'Document']
