from flask import Blueprint
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import storage

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            database:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
    """
    try:
        storage.get_session().execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        storage.rollback()
        database = "unavailable"
    return {"status": "ok", "database": database, "version": "1.0.0"}, 200
