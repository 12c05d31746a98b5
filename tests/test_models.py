"""
Tests for message models and response shapes.
"""
import pydantic
import pytest

from pwgen.models import (
    MenuMessage,
    PasswordClass,
    PasswordRequest,
    PasswordResponse,
    ResponseKind,
)


class TestPasswordResponse:
    """Exactly one response shape holds at a time."""

    def test_success(self):
        response = PasswordResponse.success("abcdef")
        assert response.kind is ResponseKind.SUCCESS
        assert response.continue_ is True
        assert response.is_error is False
        assert response.error_message == ""

    def test_failure(self):
        response = PasswordResponse.failure("bad")
        assert response.kind is ResponseKind.ERROR
        assert response.continue_ is True
        assert response.password == ""

    def test_closing(self):
        response = PasswordResponse.closing()
        assert response.kind is ResponseKind.CLOSE
        assert response.password == ""
        assert response.error_message == ""
        assert response.is_error is False

    @pytest.mark.parametrize(
        "fields",
        [
            {"continue_": True, "password": "", "is_error": False, "error_message": ""},
            {"continue_": True, "password": "abc", "is_error": True, "error_message": "bad"},
            {"continue_": True, "password": "abc", "is_error": False, "error_message": "bad"},
            {"continue_": False, "password": "abc", "is_error": False, "error_message": ""},
            {"continue_": False, "password": "", "is_error": True, "error_message": "bad"},
        ],
    )
    def test_mixed_shapes_rejected(self, fields):
        with pytest.raises(pydantic.ValidationError):
            PasswordResponse(**fields)

    def test_password_capacity(self):
        PasswordResponse.success("x" * 32)
        with pytest.raises(pydantic.ValidationError):
            PasswordResponse.success("x" * 33)

    def test_responses_are_immutable(self):
        response = PasswordResponse.success("abcdef")
        with pytest.raises(pydantic.ValidationError):
            response.password = "changed"


class TestPasswordRequest:
    def test_selector_is_single_character(self):
        with pytest.raises(pydantic.ValidationError):
            PasswordRequest(selector="nn", length_text="8")


class TestPasswordClass:
    def test_from_selector(self):
        assert PasswordClass.from_selector("m") is PasswordClass.MIXED
        assert PasswordClass.from_selector("A") is PasswordClass.ALPHA

    def test_unknown_selector(self):
        with pytest.raises(ValueError):
            PasswordClass.from_selector("x")


def test_menu_capacity():
    MenuMessage(menu_text="m" * 1023)
    with pytest.raises(pydantic.ValidationError):
        MenuMessage(menu_text="m" * 1024)
