"""Tests for identity and secret generation."""

import re

import pytest

from pgdb_agent.core.identity import (
    generate_database_name,
    generate_instance_name,
    generate_user_name,
    random_lower_alnum,
    random_password,
)


class TestIdentity:
    """Tests for generated names."""

    def test_instance_name(self) -> None:
        assert re.fullmatch(r"db-[a-z0-9]{8}", generate_instance_name())

    def test_database_name(self) -> None:
        assert re.fullmatch(r"pg_[a-z0-9]{10}", generate_database_name())

    def test_user_name(self) -> None:
        assert re.fullmatch(r"u_[a-z0-9]{10}", generate_user_name())

    def test_names_differ(self) -> None:
        assert len({generate_instance_name() for _ in range(50)}) == 50

    def test_random_lower_alnum_rejects_non_positive(self) -> None:
        with pytest.raises(ValueError):
            random_lower_alnum(0)


class TestPassword:
    """Tests for random_password."""

    def test_url_safe_43_chars(self) -> None:
        password = random_password()

        assert len(password) == 43
        assert re.fullmatch(r"[A-Za-z0-9_-]+", password)

    def test_unique(self) -> None:
        assert random_password() != random_password()

    def test_minimum_cannot_be_lowered(self) -> None:
        assert len(random_password(min_length=4)) >= 24

    def test_unreachable_minimum(self) -> None:
        with pytest.raises(ValueError):
            random_password(min_length=64)
