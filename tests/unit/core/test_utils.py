"""Tests for text and cancellation helpers."""

import asyncio

import pytest

from app.core.errors import OperationCancelledError
from app.core.utils.cancellation import raise_if_cancelled
from app.core.utils.text import backend_pool_for, generate_cell_name, generate_subdomain


class TestGenerateSubdomain:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Acme Corp", "acme-corp"),
            ("Contoso Health, Inc.", "contoso-health-inc"),
            ("  Fabrikam__Labs ", "fabrikam-labs"),
            ("--Tail Spin--", "tail-spin"),
            ("!!!", ""),
        ],
    )
    def test_examples(self, name, expected):
        assert generate_subdomain(name) == expected

    def test_truncates_without_trailing_hyphen(self):
        result = generate_subdomain("abc def", max_length=4)

        assert result == "abc"


class TestCellNames:
    def test_name_shape(self):
        name = generate_cell_name("dedicated", "westus")

        prefix, region, suffix = name.split("-")
        assert (prefix, region) == ("dedicated", "westus")
        assert len(suffix) == 8

    def test_backend_pool(self):
        assert backend_pool_for("shared-eastus-1a2b3c4d") == "shared-eastus-1a2b3c4d-backend"


class TestRaiseIfCancelled:
    def test_no_signal(self):
        raise_if_cancelled(None, "op")

    def test_unset_signal(self):
        raise_if_cancelled(asyncio.Event(), "op")

    def test_set_signal(self):
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(OperationCancelledError) as exc_info:
            raise_if_cancelled(cancel, "provision_cell")

        assert exc_info.value.details == {"operation": "provision_cell"}
