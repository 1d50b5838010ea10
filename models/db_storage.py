from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from models.base_model import Base
from models.user import User
from models.refresh_token import RefreshToken

# Map model names for easy querying
classes = {
    "User": User,
    "RefreshToken": RefreshToken,
}


class DBStorage:
    __engine = None
    __session = None

    def configure(self, url: str, echo: bool = False):
        """Build the engine for `url`, replacing any previous one"""
        if self.__session is not None:
            self.__session.remove()
        if self.__engine is not None:
            self.__engine.dispose()

        if url.startswith("sqlite"):
            kwargs = {"echo": echo, "connect_args": {"check_same_thread": False}}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # Every session must see the same in-memory database
                kwargs["poolclass"] = StaticPool
            self.__engine = create_engine(url, **kwargs)

            # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
        else:
            self.__engine = create_engine(url, echo=echo, pool_pre_ping=True)
        self.__session = None

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
        try:
            self.__session.commit()
        except SQLAlchemyError:
            self.__session.rollback()
            raise

    def rollback(self):
        self.__session.rollback()

    def delete(self, obj=None):
        """Delete object if exists (hard delete)"""
        if obj:
            self.__session.delete(obj)

    def get(self, cls, id):
        """Fetch one object by class and ID"""
        if cls in classes.values():
            return self.__session.get(cls, id)
        return None

    def count(self, cls=None):
        """Count objects"""
        if cls:
            return self.__session.query(cls).count()
        total = 0
        for model in classes.values():
            total += self.__session.query(model).count()
        return total

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    # expose the SQLAlchemy session for advanced querying (conditional updates, filters)
    def get_session(self):
        return self.__session
