"""Tests for llama.__init__ — lazy attribute access covers all public names."""

import pytest

import llama


@pytest.mark.parametrize("name", llama.__all__)
def test_all_names_resolve(name: str) -> None:
    """Every name in __all__ must resolve via __getattr__ without error."""
    obj = getattr(llama, name)
    assert obj is not None, f"llama.{name} resolved to None"


def test_resolves_to_defining_module() -> None:
    from llama.app import Application
    from llama.data.database import Database
    from llama.validation.validator import Validator

    assert llama.Application is Application
    assert llama.Database is Database
    assert llama.Validator is Validator


def test_unknown_name_raises_attribute_error() -> None:
    """Accessing an unregistered name raises AttributeError."""
    with pytest.raises(AttributeError, match="no attribute"):
        llama.__getattr__("ThisDoesNotExist")


def test_version() -> None:
    assert llama.__version__ == "0.1.0"
