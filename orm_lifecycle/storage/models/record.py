"""
Base class for persisted models with lifecycle callbacks.

`Record` is a SQLModel base (not a table) that mixes in `ModelCallbacks`
and defines the save, create, update and destroy callback chains. Table
models subclass it and register their own callbacks:

    class Author(Record, table=True):
        ...

    Author.before_save("normalize_name")

`save()` runs the save chain around the create or update chain, so the
order for a new record is before_save, before_create, INSERT, after_create,
after_save. A callback that raises `Abort` stops the write and makes `save()`
return False.
"""

from typing import TYPE_CHECKING

from sqlalchemy import inspect as sa_inspect
from sqlmodel import Session, SQLModel

from orm_lifecycle.callbacks import Abort
from orm_lifecycle.model_callbacks import ModelCallbacks

if TYPE_CHECKING:
    from orm_lifecycle.storage.relation import Relation


class Record(SQLModel, ModelCallbacks):
    """SQLModel base with save/create/update/destroy callbacks and relations."""

    @classmethod
    def query(cls, session: Session) -> "Relation":
        """Start a relation over this model's table."""
        from orm_lifecycle.storage.relation import Relation

        return Relation(cls, session)

    @classmethod
    def where(cls, session: Session, **conditions) -> "Relation":
        return cls.query(session).where(**conditions)

    @property
    def new_record(self) -> bool:
        """True until the record has been flushed to the database."""
        return not sa_inspect(self).has_identity

    def save(self, session: Session) -> bool:
        """Insert or update the record, running its callbacks.

        Returns:
            False if a before callback halted the chain, True otherwise.
        """
        action = "create" if self.new_record else "update"

        def persist():
            session.add(self)
            session.flush()
            return self

        def write():
            if self.run_callbacks(action, persist) is False:
                # Halted create/update chains must not reach the after_save callbacks.
                raise Abort
            return self

        try:
            return self.run_callbacks("save", write) is not False
        except Abort:
            return False

    def destroy(self, session: Session) -> bool:
        """Delete the record, running the destroy callbacks."""

        def remove():
            session.delete(self)
            session.flush()
            return self

        return self.run_callbacks("destroy", remove) is not False


Record.define_model_callbacks("save", "create", "update", "destroy", skip_after_callbacks_if_terminated=True)
