import pytest
from sqlalchemy.exc import OperationalError

from storefront.data.models import UserModel
from storefront.data.unit_of_work import UnitOfWork
from storefront.domain.errors import InternalError
from storefront.utils.retry import db_retry


def test_commits_on_clean_exit(session_factory, read):
    with UnitOfWork(session_factory) as tx:
        tx.add(UserModel(full_name="Ada", email="ada@example.com", role="customer"))

    assert read.count(UserModel, email="ada@example.com") == 1


def test_rolls_back_and_reraises(session_factory, read):
    with pytest.raises(KeyError):
        with UnitOfWork(session_factory) as tx:
            tx.add(UserModel(full_name="Bob", email="bob@example.com", role="customer"))
            tx.flush()
            raise KeyError("boom")

    assert read.count(UserModel, email="bob@example.com") == 0


def test_session_released_on_every_exit(session_factory):
    uow = UnitOfWork(session_factory)
    with pytest.raises(RuntimeError):
        with uow:
            raise RuntimeError("x")

    assert uow.session is None


def test_transient_storage_failure_is_retried():
    attempts = {"n": 0}

    @db_retry()
    def flaky():
        attempts["n"] += 1
        if attempts["n"] < 3:
            try:
                raise OperationalError("UPDATE products", {}, Exception("database is locked"))
            except OperationalError as e:
                raise InternalError("Storage failure") from e
        return "done"

    assert flaky() == "done"
    assert attempts["n"] == 3


def test_non_transient_failure_is_not_retried():
    attempts = {"n": 0}

    @db_retry()
    def broken():
        attempts["n"] += 1
        raise InternalError("Storage failure")

    with pytest.raises(InternalError):
        broken()
    assert attempts["n"] == 1
