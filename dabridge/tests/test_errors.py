from dabridge.errors import (ConfirmationError, NotFoundError,
                             SimulationError)


def test_problem_detail_includes_query():
    err = NotFoundError("no blob", query="merkle", data={"height": 5})
    problem = err.to_problem()
    assert problem["type"] == "urn:dabridge:not_found"
    assert problem["data"] == {"height": 5, "query": "merkle"}
    assert "[merkle]" in str(err)


def test_stage_errors_report_risk():
    assert SimulationError("x").funds_at_risk is False
    err = ConfirmationError("timeout", tx_hash="0xabc")
    problem = err.to_problem()
    assert problem["stage"] == "confirm"
    assert problem["funds_at_risk"] is True
    assert problem["tx_hash"] == "0xabc"
