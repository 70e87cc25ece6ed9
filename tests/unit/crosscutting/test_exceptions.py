"""
Unit tests for AccountsError and its context wrapping.
"""

import pytest

from accounts.crosscutting.exceptions import AccountsError, StorageError
from accounts.domain.errors import (
    AuthenticationFailureError,
    DelegateCallError,
    PasswordHashError,
    UniqueEmailError,
    UserNotFoundError,
)

pytestmark = pytest.mark.unit


def test_with_context_keeps_kind_and_id():
    err = UserNotFoundError("user not found")

    wrapped = err.with_context("query: user_id[42]")

    assert type(wrapped) is UserNotFoundError
    assert wrapped is not err
    assert wrapped.error_id == err.error_id
    assert wrapped.original_error is err
    assert str(wrapped) == "query: user_id[42]: user not found"
    assert str(err) == "user not found"


def test_with_context_stacks():
    err = StorageError("timeout").with_context("query").with_context("authenticate")

    assert err.message == "authenticate: query: timeout"


def test_to_response():
    err = UniqueEmailError("email is not unique", error_id="abc")

    assert err.to_response().to_dict() == {
        "error_code": "EMAIL_NOT_UNIQUE",
        "message": "email is not unique",
        "error_id": "abc",
    }


@pytest.mark.parametrize(
    "cls, code",
    [
        (AccountsError, "ACCOUNTS_ERROR"),
        (StorageError, "STORAGE_ERROR"),
        (UserNotFoundError, "USER_NOT_FOUND"),
        (UniqueEmailError, "EMAIL_NOT_UNIQUE"),
        (AuthenticationFailureError, "AUTHENTICATION_FAILED"),
        (PasswordHashError, "PASSWORD_HASH_FAILED"),
        (DelegateCallError, "DELEGATE_CALL_FAILED"),
    ],
)
def test_error_codes(cls, code):
    err = cls("boom")

    assert err.error_code == code
    assert isinstance(err, AccountsError)
