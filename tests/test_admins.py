import pytest

from security.admins import is_admin, require_admin
from security.operator_auth import split_csv
from watches.errors import AdminOnly


def test_split_csv():
    assert split_csv(" a, b ,,c ") == {"a", "b", "c"}
    assert split_csv("") == set()


def test_allow_list():
    assert is_admin("42", "1, 42")
    assert not is_admin("4", "1, 42")
    assert not is_admin("", "1, 42")


def test_empty_allow_list_means_nobody():
    assert not is_admin("42", "")
    with pytest.raises(AdminOnly):
        require_admin("42", "")
