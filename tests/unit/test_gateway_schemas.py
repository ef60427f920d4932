"""Unit tests for mp_gateway Pydantic schemas and the parse_input boundary."""

import pytest
from pydantic import ValidationError

from src.mp_common.errors import ErrorKind
from src.mp_common.errors import ValidationError as AppValidationError
from src.mp_common.validation import parse_input
from src.mp_gateway.user.schemas import LoginRequest, RegisterRequest


def _register(**overrides: str) -> RegisterRequest:
    data = {
        "email": "Alice@Example.com",
        "password": "secret1",
        "first_name": "Alice",
        "last_name": "Smith",
    }
    data.update(overrides)
    return RegisterRequest(**data)


class TestRegisterRequest:
    def test_valid_input_defaults_to_buyer(self) -> None:
        req = _register()
        assert req.role == "buyer"
        assert req.email == "alice@example.com"

    def test_seller_allowed(self) -> None:
        assert _register(role="seller").role == "seller"

    def test_admin_cannot_be_self_assigned(self) -> None:
        with pytest.raises(ValidationError):
            _register(role="admin")

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            _register(email="not-an-email")

    def test_password_too_short(self) -> None:
        with pytest.raises(ValidationError):
            _register(password="12345")

    def test_names_are_stripped_then_checked(self) -> None:
        assert _register(first_name="  Al  ").first_name == "Al"
        with pytest.raises(ValidationError):
            _register(last_name=" S ")

    def test_name_too_long(self) -> None:
        with pytest.raises(ValidationError):
            _register(first_name="a" * 51)


class TestLoginRequest:
    def test_email_lowercased(self) -> None:
        req = LoginRequest(email="BOB@example.com", password="secret1")
        assert req.email == "bob@example.com"


class TestParseInput:
    def test_returns_model(self) -> None:
        req = parse_input(LoginRequest, {"email": "bob@example.com", "password": "secret1"})
        assert isinstance(req, LoginRequest)

    def test_converts_to_app_validation_error(self) -> None:
        with pytest.raises(AppValidationError) as exc_info:
            parse_input(LoginRequest, {"email": "bob@example.com", "password": "x"})
        assert exc_info.value.kind == ErrorKind.VALIDATION_ERROR
        assert exc_info.value.message.startswith("password:")
