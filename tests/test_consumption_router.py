"""
Tests for `services/consumption_router.py`.

Covers contract rules:
- The atomic procedure is tried first and its result is normalized.
- Schema-compatibility errors fall back to the multi-step path.
- Any other procedure error propagates unchanged.
- The 6th vendor is refused by the procedure path.
- Missing or blank ids are rejected before the procedure is called.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from postgrest.exceptions import APIError

from services.consumption_router import consume_lead


def _procedure_with_cap(db):
    """Minimal atomic procedure: cap + insert, as one step."""

    def handler(name, params):
        holders = {row["vendor_id"] for row in db.rows("lead_purchases") if row["lead_id"] == params["p_lead_id"]}
        if params["p_vendor_id"] in holders:
            return {"success": True, "existing_purchase": True, "consumption_type": "DAILY_INCLUDED"}
        if len(holders) >= 5:
            return {"success": False, "code": "LEAD_CAP_REACHED", "error": "This lead has reached maximum 5 vendors limit"}
        db.rows("lead_purchases").append(
            {"vendor_id": params["p_vendor_id"], "lead_id": params["p_lead_id"], "consumption_type": "DAILY_INCLUDED"}
        )
        return {
            "success": True,
            "existing_purchase": False,
            "consumption_type": "DAILY_INCLUDED",
            "remaining": {"daily": 0, "weekly": 2, "yearly": 99},
            "plan_name": "Growth",
        }

    return handler


def test_procedure_result_is_normalized(db, now) -> None:
    db.rpc_handler = _procedure_with_cap(db)

    envelope = consume_lead(db, "vendor-a", "lead-1", mode="auto", purchase_price="12", now=now)

    assert envelope["success"]
    assert envelope["consumption_type"] == "DAILY_INCLUDED"
    assert envelope["remaining"] == {"daily": 0, "weekly": 2, "yearly": 99}
    assert db.rpc_calls == [
        (
            "consume_vendor_lead",
            {"p_vendor_id": "vendor-a", "p_lead_id": "lead-1", "p_mode": "AUTO", "p_purchase_price": 12.0},
        )
    ]
    # procedure path never touches the tables through the multi-step path
    assert db.calls == []


def test_procedure_mode_and_price_are_normalized(db, now) -> None:
    db.rpc_handler = lambda name, params: {"success": True}

    consume_lead(db, "vendor-a", "lead-1", mode="whatever", purchase_price="-3", now=now)

    assert db.rpc_calls[0][1]["p_mode"] == "AUTO"
    assert db.rpc_calls[0][1]["p_purchase_price"] == 0.0


def test_procedure_rejection_gets_status_code(db, now) -> None:
    db.rpc_handler = lambda name, params: {"success": False, "code": "subscription_inactive", "error": "No active subscription plan"}

    envelope = consume_lead(db, "vendor-a", "lead-1", now=now)

    assert envelope == {
        "success": False,
        "code": "SUBSCRIPTION_INACTIVE",
        "error": "No active subscription plan",
        "statusCode": 403,
    }


def test_procedure_returning_list_is_unwrapped(db, now) -> None:
    db.rpc_handler = lambda name, params: [{"success": False, "code": "LEAD_NOT_FOUND", "error": "Lead not found"}]

    assert consume_lead(db, "vendor-a", "lead-1", now=now)["statusCode"] == 404


def test_procedure_result_raised_as_api_error_is_unwrapped(db, now) -> None:
    def handler(name, params):
        raise APIError({"success": True, "consumption_type": "WEEKLY_INCLUDED", "remaining": {"weekly": 1}})

    db.rpc_handler = handler

    envelope = consume_lead(db, "vendor-a", "lead-1", now=now)

    assert envelope["success"]
    assert envelope["consumption_type"] == "WEEKLY_INCLUDED"


def test_cap_invariant_on_procedure_path(db, now) -> None:
    db.rpc_handler = _procedure_with_cap(db)

    results = [consume_lead(db, f"vendor-{n}", "lead-1", now=now) for n in range(6)]

    assert all(result["success"] for result in results[:5])
    assert results[5]["code"] == "LEAD_CAP_REACHED"
    assert results[5]["statusCode"] == 409
    assert len({row["vendor_id"] for row in db.rows("lead_purchases")}) == 5


def test_missing_procedure_falls_back_to_multistep(db, now) -> None:
    """No rpc handler: the fake reports the function as missing (PGRST202)."""

    db.add_vendor("V1", daily=1, weekly=3, yearly=100)
    db.add_lead("A")

    first = consume_lead(db, "V1", "A", mode="AUTO", now=now)
    second = consume_lead(db, "V1", "A", mode="AUTO", now=now)

    assert first["success"] and not first["existing_purchase"]
    assert first["consumption_type"] == "DAILY_INCLUDED"
    assert first["remaining"] == {"daily": 0, "weekly": 2, "yearly": 99}
    assert first["plan_name"] == "Growth"
    assert first["purchase"]["lead_id"] == "A"

    assert second["success"] and second["existing_purchase"]
    assert second["consumption_type"] == "DAILY_INCLUDED"
    assert second["remaining"] == {"daily": 0, "weekly": 2, "yearly": 99}
    assert len(db.rows("lead_purchases")) == 1


def test_missing_reset_column_falls_back(db, now) -> None:
    def handler(name, params):
        raise APIError({"code": "42703", "message": 'column "daily_reset_at" does not exist', "details": None, "hint": None})

    db.rpc_handler = handler
    db.add_vendor("vendor-a", daily=2, weekly=5, yearly=10)
    db.add_lead("lead-1")

    envelope = consume_lead(db, "vendor-a", "lead-1", mode="BUY_EXTRA", purchase_price=Decimal("20"), now=now)

    assert envelope["consumption_type"] == "PAID_EXTRA"
    assert envelope["remaining"] == {"daily": 2, "weekly": 5, "yearly": 10}
    assert db.rows("lead_purchases")[0]["purchase_price"] == "20"


def test_fallback_rejection_envelope(db, now) -> None:
    db.add_vendor("vendor-a", daily=5, weekly=5, yearly=0)
    db.add_lead("lead-1")

    envelope = consume_lead(db, "vendor-a", "lead-1", now=now)

    assert envelope["success"] is False
    assert envelope["code"] == "PAID_REQUIRED"
    assert envelope["statusCode"] == 402
    assert envelope["remaining"]["yearly"] == 0


def test_fallback_invalid_input(db, now) -> None:
    envelope = consume_lead(db, "", "lead-1", now=now)

    assert envelope["code"] == "INVALID_INPUT"
    assert envelope["statusCode"] == 400


def test_other_procedure_errors_propagate(db, now) -> None:
    error = APIError({"code": "42501", "message": "permission denied for function consume_vendor_lead", "details": None, "hint": None})

    def handler(name, params):
        raise error

    db.rpc_handler = handler
    db.add_vendor("vendor-a", daily=1, weekly=1, yearly=1)
    db.add_lead("lead-1")

    with pytest.raises(APIError) as excinfo:
        consume_lead(db, "vendor-a", "lead-1", now=now)

    assert excinfo.value is error
    assert db.rows("lead_purchases") == []


@pytest.mark.parametrize("vendor_id,lead_id", [(None, "lead-1"), ("  ", "lead-1"), ("vendor-a", None), ("vendor-a", " ")])
def test_invalid_input_rejected_before_procedure(db, now, vendor_id, lead_id) -> None:
    db.rpc_handler = _procedure_with_cap(db)

    envelope = consume_lead(db, vendor_id, lead_id, now=now)

    assert envelope == {
        "success": False,
        "code": "INVALID_INPUT",
        "error": "vendor_id and lead_id are required",
        "statusCode": 400,
    }
    assert db.rpc_calls == []
    assert db.calls == []


def test_procedure_receives_stripped_ids(db, now) -> None:
    db.rpc_handler = _procedure_with_cap(db)

    consume_lead(db, " vendor-a ", "lead-1\n", now=now)

    assert db.rpc_calls[0][1]["p_vendor_id"] == "vendor-a"
    assert db.rpc_calls[0][1]["p_lead_id"] == "lead-1"
