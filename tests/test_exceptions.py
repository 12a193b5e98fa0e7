"""Tests for the backtester exception hierarchy."""

import pytest

from whatif.exceptions import (ConfigError, DataValidationError, ErrorKind,
                               InsufficientDataError, InvalidDateError,
                               NoDataError, ProviderUnavailableError,
                               WhatIfError)


def test_whatif_error_is_base_exception() -> None:
    """WhatIfError should be catchable as Exception."""
    with pytest.raises(Exception):
        raise WhatIfError("test error")


@pytest.mark.parametrize(
    "error_cls",
    [
        InvalidDateError,
        ProviderUnavailableError,
        NoDataError,
        InsufficientDataError,
        ConfigError,
        DataValidationError,
    ],
)
def test_domain_errors_inherit_from_whatif_error(error_cls: type) -> None:
    """Every domain error should be catchable as WhatIfError."""
    with pytest.raises(WhatIfError):
        raise error_cls("failed")


def test_error_kinds_and_statuses_are_distinct_per_category() -> None:
    """Input, upstream and data-insufficiency errors map to distinct statuses."""
    assert InvalidDateError.kind is ErrorKind.INVALID_DATE
    assert InvalidDateError.status == 400
    assert ProviderUnavailableError.kind is ErrorKind.PROVIDER_UNAVAILABLE
    assert ProviderUnavailableError.status == 502
    assert NoDataError.kind is ErrorKind.NO_DATA
    assert NoDataError.status == 422
    assert InsufficientDataError.kind is ErrorKind.INSUFFICIENT_DATA_AFTER_SNAP
    assert InsufficientDataError.status == 422


def test_exception_messages_preserved() -> None:
    """Exception messages should be accessible via str(), detail kept apart."""
    err = ProviderUnavailableError("Price provider error", detail="HTTP 401")
    assert str(err) == "Price provider error"
    assert err.detail == "HTTP 401"


def test_to_dict_hides_detail_by_default() -> None:
    """Upstream detail is only serialized on request."""
    err = ProviderUnavailableError("Price provider error", detail="HTTP 401")

    assert err.to_dict() == {
        "error": "provider_unavailable",
        "message": "Price provider error",
    }
    assert err.to_dict(include_detail=True)["detail"] == "HTTP 401"
