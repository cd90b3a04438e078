"""
Schema and error-taxonomy unit tests (no database needed).
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from logbook_api.core.errors import (
    AuthorizationError,
    InternalError,
    NotFoundError,
    ValidationFailure,
)
from logbook_shared.schemas.common import US_STATE_CODES
from logbook_shared.schemas.establishments import EstablishmentCreate, EstablishmentUpdate


class TestEstablishmentUpdate:
    def test_changes_only_reports_sent_fields(self):
        upd = EstablishmentUpdate.model_validate({"name": " New Name ", "naics_code": None})
        assert upd.changes() == {"name": "New Name", "naics_code": None}

    def test_empty_update(self):
        assert EstablishmentUpdate().changes() == {}

    @pytest.mark.parametrize("field", ["name", "address", "city", "state", "zip_code", "average_employees"])
    def test_required_fields_reject_null(self, field):
        with pytest.raises(ValidationError) as exc_info:
            EstablishmentUpdate.model_validate({field: None})
        assert "cannot be null" in str(exc_info.value)

    def test_bool_is_not_an_employee_count(self):
        with pytest.raises(ValidationError):
            EstablishmentUpdate.model_validate({"average_employees": True})


class TestStateCodes:
    def test_fifty_states_and_dc(self):
        assert len(US_STATE_CODES) == 51
        assert "DC" in US_STATE_CODES

    def test_lowercase_accepted(self):
        est = EstablishmentCreate(
            name="A", address="B", city="C", state="dc", zip_code="20001", average_employees=0
        )
        assert est.state == "DC"


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        "error,code,status",
        [
            (AuthorizationError(), "UNAUTHORIZED", 401),
            (NotFoundError("gone"), "NOT_FOUND", 404),
            (ValidationFailure([]), "VALIDATION_FAILED", 422),
            (InternalError(), "INTERNAL_SERVER_ERROR", 500),
        ],
    )
    def test_envelope(self, error, code, status):
        body = error.to_dict()["error"]
        assert body["code"] == code
        assert body["status"] == status
        assert error.status_code == status

    def test_from_pydantic_strips_location_prefix(self):
        with pytest.raises(ValidationError) as exc_info:
            EstablishmentCreate.model_validate({})
        failure = ValidationFailure.from_pydantic(exc_info.value)
        assert {f["field"] for f in failure.fields} == {
            "name", "address", "city", "state", "zip_code", "average_employees"
        }
