"""Unit tests for the PATCH DTO base class and the pagination helper."""

from __future__ import annotations

import pytest
from django.test import override_settings
from pydantic import ValidationError

from modules.core.pagination import MAX_PAGE_SIZE, clamp_page_size, paginate
from modules.users.dtos import UpdateUserDTO, UserOutputDTO
from modules.users.models import User

pytestmark = pytest.mark.unit


class TestPatchDTO:
    def test_empty_patch_rejected(self):
        with pytest.raises(ValidationError, match="At least one field"):
            UpdateUserDTO.model_validate({})

    def test_absent_fields_are_not_provided(self):
        patch = UpdateUserDTO.model_validate({"name": "Jane Doe"})
        assert patch.provided("name")
        assert not patch.provided("phone")
        assert patch.model_fields_set == {"name"}

    def test_explicit_null_on_nullable_field_is_provided(self):
        patch = UpdateUserDTO.model_validate({"phone": None})
        assert patch.provided("phone")
        assert patch.phone is None

    def test_explicit_null_on_required_field_rejected(self):
        with pytest.raises(ValidationError, match="cannot be null"):
            UpdateUserDTO.model_validate({"email": None})

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            UpdateUserDTO.model_validate({"id": "abc"})

    def test_patch_is_frozen(self):
        patch = UpdateUserDTO.model_validate({"name": "Jane Doe"})
        with pytest.raises(ValidationError):
            patch.name = "Other"


class TestClampPageSize:
    @override_settings(DEFAULT_PAGE_SIZE=20)
    def test_defaults(self):
        assert clamp_page_size(None) == 20
        assert clamp_page_size(0) == 20

    def test_capped(self):
        assert clamp_page_size(MAX_PAGE_SIZE + 50) == MAX_PAGE_SIZE
        assert clamp_page_size(5) == 5


class TestPaginate:
    def test_pages_and_metadata(self, make_user):
        for _ in range(5):
            make_user()
        page = paginate(
            User.objects.order_by("email"), 2, 2, UserOutputDTO.from_entity
        )
        assert page.page == 2
        assert page.page_size == 2
        assert page.total == 5
        assert page.total_pages == 3
        assert page.has_next is True
        assert page.has_previous is True
        assert [u.email for u in page.results] == [
            "user3@example.com",
            "user4@example.com",
        ]

    def test_page_past_end_is_empty(self, make_user):
        make_user()
        page = paginate(User.objects.all(), 9, 10, UserOutputDTO.from_entity)
        assert page.results == []
        assert page.total == 1
        assert page.has_next is False

    def test_empty_queryset(self):
        page = paginate(User.objects.all(), 1, 10, UserOutputDTO.from_entity)
        assert page.total == 0
        assert page.total_pages == 0
        assert page.has_next is False
        assert page.has_previous is False
