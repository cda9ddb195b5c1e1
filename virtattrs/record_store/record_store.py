from sqlalchemy import Text
from sqlalchemy import cast
from sqlalchemy import create_engine
from sqlalchemy import select
from sqlalchemy import inspect
from sqlalchemy.orm import Session
from sqlalchemy.exc import InvalidRequestError

from virtattrs.app_cfg import VirtAttrsAppCfg
from virtattrs.model.record_store_obj import RecordStoreObject

import virtattrs.util.virtattrs_logger

logging = virtattrs.util.virtattrs_logger.get_logger()


class RecordStore(object):
    """
    Wraps a relational database with the ORM layer so that models (and the
    virtual attributes serialized into their store columns) can be saved and
    loaded back.

    Objects are handed back detached from any session, with their loaded
    state intact. Changes made to them afterwards, including changes to
    virtual attributes, are written by the next save().

    Failing any database operation (flushing, etc) should throw an Exception,
    which should be handled in level above.
    """

    app_cfg = VirtAttrsAppCfg()

    # this creates dummy db for testing
    SQLITE_INMEMORY_CONNECT_STR = "sqlite+pysqlite:///:memory:"

    engine = None

    def init_db_engine(self, connect_string=None, debug=None):
        """
        Default is to use the database defined by the RECORD_STORE_DB_URL
        environment variable, which falls back to an in-memory SQLite db.
        Returns the engine (mostly used for testing)
        """
        if connect_string is None:
            logging.debug("Record store defaulting to configured connection")
            connect_string = self.app_cfg.record_store_db_url
        if debug is None:
            debug = self.app_cfg.record_store_echo
        engine_args = {"echo": debug}
        if not connect_string.startswith("sqlite"):
            # pool size needs to be > number of threads using the store
            engine_args["pool_size"] = 25
            engine_args["max_overflow"] = 15
        self.engine = create_engine(connect_string, **engine_args)
        return self.engine

    def create_tables(self, base=RecordStoreObject):
        logging.info(f"Creating record store tables {sorted(base.metadata.tables)}")
        base.metadata.create_all(bind=self.engine)

    def drop_tables(self, base=RecordStoreObject):
        logging.info(f"Dropping record store tables {sorted(base.metadata.tables)}")
        base.metadata.drop_all(bind=self.engine)

    def save(self, obj):
        """
        Insert or update `obj` and return it refreshed from the database
        """
        with Session(self.engine, expire_on_commit=False) as session:
            session.add(obj)
            session.commit()
            session.refresh(obj)
            session.expunge(obj)
            return obj

    def get(self, cls, pk):
        """
        Returns the object of type `cls` with primary key `pk`, or None
        """
        with Session(self.engine, expire_on_commit=False) as session:
            obj = session.get(cls, pk)
            if obj is not None:
                session.expunge(obj)
            return obj

    def refresh_object(self, obj):
        """
        Refresh the object with fresh state that may have changed in
        the database (including its store columns) and return it.
        Unsaved changes on `obj` are discarded. Returns None if the
        object no longer exists.
        """
        with Session(self.engine, expire_on_commit=True) as session:
            # merged local changes must not be flushed over the stored row
            with session.no_autoflush:
                merged = session.merge(obj)
                try:
                    session.refresh(merged)
                    session.expunge(merged)
                    return merged
                except InvalidRequestError as e:
                    # if it is not persistent, it must have been deleted
                    # and cannot be refreshed
                    logging.warning(
                        f"unable to refresh, possibly deleted object {obj}:{e}"
                    )
            return None

    def delete(self, obj):
        with Session(self.engine) as session:
            session.delete(session.merge(obj))
            session.commit()
        logging.debug(f"Deleted {type(obj).__name__} {inspect(obj).identity}")

    def raw_column_value(self, cls, pk, column: str):
        """
        Returns the text stored in `column`, bypassing the type conversion
        configured on the mapped attribute
        """
        mapper = inspect(cls)
        stmt = select(cast(mapper.columns[column], Text)).where(
            mapper.primary_key[0] == pk
        )
        with self.engine.connect() as connection:
            return connection.execute(stmt).scalar_one_or_none()
